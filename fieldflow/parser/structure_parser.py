"""Abstract base class for structure parsers."""
from abc import ABC, abstractmethod
from typing import List

from fieldflow.schema.models import FieldNode


class StructureParseError(ValueError):
    """Raised when a structure cannot be turned into a field tree."""


class StructureParser(ABC):
    """Abstract base class for structure parsers."""

    def __init__(self, id_prefix: str = "field"):
        """
        Initialize parser.

        Args:
            id_prefix: Prefix for generated node ids
        """
        self.id_prefix = id_prefix

    @abstractmethod
    def parse(self, content: str) -> List[FieldNode]:
        """
        Parse structure content and return its field tree.

        Args:
            content: Raw structure content (XML document, JSON schema)

        Returns:
            List[FieldNode]: Root nodes of the tree

        Raises:
            StructureParseError: If parsing fails
        """
        pass

    def make_id(self, path: str) -> str:
        """Build a node id that is stable for a given path."""
        return f"{self.id_prefix}_{path}"

    @staticmethod
    def join_path(parent_path: str, name: str) -> str:
        """Append a segment to a dotted path."""
        return f"{parent_path}.{name}" if parent_path else name
