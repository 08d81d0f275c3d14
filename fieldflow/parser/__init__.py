"""
Structure Parsing Module

Turns structure documents into field trees:
- XML sample documents (lxml, hardened parser)
- JSON Schema documents with $ref resolution
- Request/response/fault filtering of combined XML messages
"""

from .structure_parser import StructureParser, StructureParseError
from .xml_parser import XmlStructureParser
from .json_schema_parser import JsonSchemaParser
from .message_filter import filter_xml_by_message_type, MESSAGE_TYPES
from .parser_factory import StructureParserFactory, parse

__all__ = [
    "StructureParser",
    "StructureParseError",
    "XmlStructureParser",
    "JsonSchemaParser",
    "StructureParserFactory",
    "filter_xml_by_message_type",
    "MESSAGE_TYPES",
    "parse",
]
