"""
JSON Schema Parser - Turns JSON Schema / OpenAPI component schemas into field trees.

Supports:
- Nested object/array structure detection
- $ref resolution (#/definitions, #/$defs, #/components/schemas)
- allOf merging
- Circular reference prevention
"""

import json
import logging
from typing import Any, Dict, List, Optional, Set, Union

from fieldflow.parser.structure_parser import StructureParser, StructureParseError
from fieldflow.schema.models import FieldNode, FieldType

logger = logging.getLogger(__name__)


class JsonSchemaParser(StructureParser):
    """Parse a JSON schema document into a field tree."""

    def __init__(self, id_prefix: str = "field"):
        super().__init__(id_prefix)
        self._document: Dict[str, Any] = {}
        self._ref_cache: Dict[str, Dict[str, Any]] = {}
        self._processing_refs: Set[str] = set()

    def parse(
        self,
        content: Union[str, Dict[str, Any]],
        root_name: Optional[str] = None,
    ) -> List[FieldNode]:
        """
        Parse a JSON schema

        Args:
            content: Schema as JSON text or already-decoded dictionary
            root_name: Name of the root node (defaults to the schema title)

        Returns:
            List[FieldNode]: Single root node

        Raises:
            StructureParseError: If the schema is not valid JSON or not an object
        """
        if isinstance(content, dict):
            schema = content
        else:
            try:
                schema = json.loads(content)
            except (TypeError, json.JSONDecodeError) as e:
                raise StructureParseError(f"Invalid JSON schema: {e}") from e

        if not isinstance(schema, dict):
            raise StructureParseError("JSON schema must be an object")

        self._document = schema
        self._ref_cache = {}
        self._processing_refs = set()

        name = root_name or schema.get("title") or "root"
        root = self._create_node(name.replace(" ", ""), schema, "")

        logger.info(f"Parsed JSON schema {root.name} with {len(root.children)} top-level fields")
        return [root]

    def _create_node(self, name: str, schema_obj: Dict[str, Any], parent_path: str) -> FieldNode:
        """
        Create a FieldNode from a schema object

        Handles:
        - Basic types (string, integer, boolean, etc.)
        - Objects with nested properties
        - Arrays with item schemas
        - $ref references
        """
        if not isinstance(schema_obj, dict):
            # Boolean schemas (true/false) carry no structure
            schema_obj = {}

        ref = schema_obj.get("$ref")
        if ref:
            if ref in self._processing_refs:
                logger.warning(f"Circular reference detected: {ref}")
                path = self.join_path(parent_path, name)
                return FieldNode(id=self.make_id(path), name=name, type=FieldType.OBJECT.value, path=path)

            resolved = self._resolve_ref(ref)
            if resolved is not None:
                self._processing_refs.add(ref)
                try:
                    return self._create_node(name, resolved, parent_path)
                finally:
                    self._processing_refs.discard(ref)

        schema_type = self._schema_type(schema_obj)
        path = self.join_path(parent_path, name)

        if schema_type == FieldType.ARRAY.value:
            items = schema_obj.get("items") or {}
            array_name = f"{name}[]"
            children = self._item_children(items, path)
            return FieldNode(
                id=self.make_id(path),
                name=array_name,
                type=FieldType.ARRAY.value,
                path=path,
                children=children,
            )

        if schema_type == FieldType.OBJECT.value:
            children = [
                self._create_node(prop_name, prop_schema, path)
                for prop_name, prop_schema in self._properties(schema_obj).items()
            ]
            return FieldNode(
                id=self.make_id(path),
                name=name,
                type=FieldType.OBJECT.value,
                path=path,
                children=children,
            )

        return FieldNode(id=self.make_id(path), name=name, type=schema_type, path=path)

    def _item_children(self, items: Dict[str, Any], path: str) -> List[FieldNode]:
        """Children of an array node come from the item schema's properties."""
        if not isinstance(items, dict):
            return []

        ref = items.get("$ref")
        if ref:
            if ref in self._processing_refs:
                logger.warning(f"Circular reference detected: {ref}")
                return []
            resolved = self._resolve_ref(ref)
            if resolved is None:
                return []
            self._processing_refs.add(ref)
            try:
                return self._item_children(resolved, path)
            finally:
                self._processing_refs.discard(ref)

        if self._schema_type(items) != FieldType.OBJECT.value:
            return []

        return [
            self._create_node(prop_name, prop_schema, path)
            for prop_name, prop_schema in self._properties(items).items()
        ]

    def _properties(self, schema_obj: Dict[str, Any]) -> Dict[str, Any]:
        """Collect properties, merging allOf parts in order."""
        properties: Dict[str, Any] = {}

        for sub_schema in schema_obj.get("allOf", []):
            if not isinstance(sub_schema, dict):
                continue

            ref = sub_schema.get("$ref")
            if not ref:
                properties.update(self._properties(sub_schema))
                continue

            if ref in self._processing_refs:
                logger.warning(f"Circular reference detected: {ref}")
                continue

            resolved = self._resolve_ref(ref)
            if resolved:
                self._processing_refs.add(ref)
                try:
                    properties.update(self._properties(resolved))
                finally:
                    self._processing_refs.discard(ref)

        properties.update(schema_obj.get("properties", {}))
        return properties

    @staticmethod
    def _schema_type(schema_obj: Dict[str, Any]) -> str:
        """Map a JSON schema type (and format) to a field type."""
        schema_type = schema_obj.get("type")

        if isinstance(schema_type, list):
            non_null = [t for t in schema_type if t != "null"]
            schema_type = non_null[0] if non_null else "string"

        if schema_type is None:
            if "properties" in schema_obj or "allOf" in schema_obj:
                return FieldType.OBJECT.value
            if "items" in schema_obj:
                return FieldType.ARRAY.value
            return FieldType.STRING.value

        if schema_type == "string" and schema_obj.get("format") in ("date", "date-time"):
            return FieldType.DATE.value

        if schema_type in [ft.value for ft in FieldType]:
            return schema_type

        return FieldType.STRING.value

    def _resolve_ref(self, ref: str) -> Optional[Dict[str, Any]]:
        """
        Resolve a local $ref (e.g., "#/definitions/Address")

        Returns:
            Referenced schema object, or None when it cannot be found
        """
        if ref in self._ref_cache:
            return self._ref_cache[ref]

        if not ref.startswith("#/"):
            logger.warning(f"Unsupported reference: {ref}")
            return None

        obj: Any = self._document
        for key in ref[2:].split("/"):
            if isinstance(obj, dict) and key in obj:
                obj = obj[key]
            else:
                logger.warning(f"Unresolved reference: {ref}")
                return None

        if isinstance(obj, dict):
            self._ref_cache[ref] = obj
            return obj

        return None
