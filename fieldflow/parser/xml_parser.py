"""XML document parser producing field trees."""
import logging
import math
import re
from collections import OrderedDict
from typing import List, Dict, Union

from lxml import etree

from fieldflow.parser.structure_parser import StructureParser, StructureParseError
from fieldflow.schema.models import FieldNode, FieldType

logger = logging.getLogger(__name__)


def create_safe_xml_parser() -> etree.XMLParser:
    """XML parser with entity expansion and network access disabled."""
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        huge_tree=False,
        remove_comments=True,
        remove_pis=True,
    )


def parse_xml_root(content: Union[str, bytes]) -> etree._Element:
    """
    Parse an XML document and return its root element.

    Raises:
        StructureParseError: If the document is empty or malformed
    """
    if content is None or not str(content).strip():
        raise StructureParseError("Empty XML document")

    data = content.encode("utf-8") if isinstance(content, str) else content

    try:
        return etree.fromstring(data, create_safe_xml_parser())
    except etree.XMLSyntaxError as e:
        raise StructureParseError(f"Malformed XML: {e}") from e


def local_name(element: etree._Element) -> str:
    """Tag name without namespace."""
    return etree.QName(element).localname


class XmlStructureParser(StructureParser):
    """Parse an XML sample document into a field tree."""

    DATE_PATTERNS = [
        re.compile(r'^\d{4}-\d{2}-\d{2}'),
        re.compile(r'^\d{1,2}/\d{1,2}/\d{2,4}$'),
        re.compile(r'^\d{2}-\d{2}-\d{4}$'),
    ]

    BOOLEAN_VALUES = ("true", "false")

    def parse(self, content: str) -> List[FieldNode]:
        """
        Parse XML content and return the tree rooted at the document element.

        Args:
            content: XML document

        Returns:
            List[FieldNode]: Single root node

        Raises:
            StructureParseError: If parsing fails
        """
        root = parse_xml_root(content)
        node = self._build_node(local_name(root), [root], "", repeated=False)

        logger.debug(f"Parsed XML structure rooted at {node.name}")
        return [node]

    def _build_node(
        self,
        tag: str,
        elements: List[etree._Element],
        parent_path: str,
        repeated: bool,
    ) -> FieldNode:
        """Build a node for all occurrences of one tag under a parent."""
        path = self.join_path(parent_path, tag)
        name = f"{tag}[]" if repeated else tag

        children = self._build_attributes(elements, path)
        children.extend(self._build_children(elements, path))

        if repeated:
            node_type = FieldType.ARRAY.value
        elif children:
            node_type = FieldType.OBJECT.value
        else:
            node_type = self._infer_type([el.text or "" for el in elements])

        return FieldNode(
            id=self.make_id(path),
            name=name,
            type=node_type,
            path=path,
            children=children,
        )

    def _build_attributes(self, elements: List[etree._Element], path: str) -> List[FieldNode]:
        """Attributes become string leaves named @attr."""
        seen: "OrderedDict[str, None]" = OrderedDict()
        for element in elements:
            for attr_name in element.attrib:
                seen[etree.QName(attr_name).localname] = None

        nodes = []
        for attr_name in seen:
            attr_path = self.join_path(path, f"@{attr_name}")
            nodes.append(
                FieldNode(
                    id=self.make_id(attr_path),
                    name=f"@{attr_name}",
                    type=FieldType.STRING.value,
                    path=attr_path,
                )
            )
        return nodes

    def _build_children(self, elements: List[etree._Element], path: str) -> List[FieldNode]:
        """Group child elements by tag, in first-appearance order."""
        groups: "OrderedDict[str, List[etree._Element]]" = OrderedDict()
        repeated: Dict[str, bool] = {}

        for element in elements:
            counts: Dict[str, int] = {}
            for child in element:
                if not isinstance(child.tag, str):
                    continue
                tag = local_name(child)
                groups.setdefault(tag, []).append(child)
                counts[tag] = counts.get(tag, 0) + 1

            for tag, count in counts.items():
                if count > 1:
                    repeated[tag] = True

        return [
            self._build_node(tag, group, path, repeated.get(tag, False))
            for tag, group in groups.items()
        ]

    def _infer_type(self, values: List[str]) -> str:
        """
        Infer leaf type from sample text values.

        Args:
            values: Text content of every occurrence

        Returns:
            str: Inferred type name
        """
        samples = [val.strip() for val in values if val and val.strip()]
        if not samples:
            return FieldType.STRING.value

        if all(self._is_int(val) for val in samples):
            return FieldType.INTEGER.value
        if all(self._is_float(val) for val in samples):
            return FieldType.NUMBER.value
        if all(val.lower() in self.BOOLEAN_VALUES for val in samples):
            return FieldType.BOOLEAN.value
        if all(any(p.match(val) for p in self.DATE_PATTERNS) for val in samples):
            return FieldType.DATE.value

        return FieldType.STRING.value

    @staticmethod
    def _is_int(value: str) -> bool:
        try:
            int(value)
            return True
        except ValueError:
            return False

    @staticmethod
    def _is_float(value: str) -> bool:
        try:
            return math.isfinite(float(value))
        except ValueError:
            return False
