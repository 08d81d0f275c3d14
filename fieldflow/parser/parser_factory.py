"""Factory for creating the appropriate structure parser."""
from pathlib import Path
from typing import List, Optional

from fieldflow.parser.structure_parser import StructureParser, StructureParseError
from fieldflow.parser.xml_parser import XmlStructureParser
from fieldflow.parser.json_schema_parser import JsonSchemaParser
from fieldflow.parser.message_filter import filter_xml_by_message_type
from fieldflow.schema.models import FieldNode


class StructureParserFactory:
    """Factory for creating structure parsers."""

    @staticmethod
    def detect_format(content: str) -> str:
        """
        Detect structure format from content.

        Returns:
            str: 'xml' or 'json_schema'

        Raises:
            StructureParseError: If format is not supported
        """
        stripped = (content or "").lstrip()

        if stripped.startswith("<"):
            return "xml"

        if stripped.startswith("{"):
            return "json_schema"

        raise StructureParseError("Unsupported structure format: expected XML or JSON schema")

    @staticmethod
    def create_parser(content: str, id_prefix: str = "field") -> StructureParser:
        """
        Create parser based on content.

        Args:
            content: Raw structure content
            id_prefix: Prefix for generated node ids

        Returns:
            StructureParser: Appropriate parser instance
        """
        fmt = StructureParserFactory.detect_format(content)

        if fmt == "xml":
            return XmlStructureParser(id_prefix)

        return JsonSchemaParser(id_prefix)

    @staticmethod
    def parse_structure(
        content: str,
        message_type: Optional[str] = None,
        id_prefix: str = "field",
    ) -> List[FieldNode]:
        """
        Convenience method to parse a structure in one call.

        Args:
            content: Raw structure content
            message_type: Optional request/response/fault filter, applied to XML only
            id_prefix: Prefix for generated node ids

        Returns:
            List[FieldNode]: Parsed tree
        """
        parser = StructureParserFactory.create_parser(content, id_prefix)

        if message_type and isinstance(parser, XmlStructureParser):
            content = filter_xml_by_message_type(content, message_type)

        return parser.parse(content)

    @staticmethod
    def parse_file(
        file_path: str,
        message_type: Optional[str] = None,
        id_prefix: str = "field",
    ) -> List[FieldNode]:
        """Parse a structure file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        content = path.read_text(encoding="utf-8")
        return StructureParserFactory.parse_structure(content, message_type, id_prefix)


def parse(content: str, message_type: Optional[str] = None) -> List[FieldNode]:
    """Parse XML or JSON schema content into a field tree."""
    return StructureParserFactory.parse_structure(content, message_type)

