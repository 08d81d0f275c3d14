"""Copy-on-write collection of field mappings for one mapping session."""
import logging
from dataclasses import replace
from typing import List, Optional, Iterator, Iterable, Set

from fieldflow.mapper.ids import SequentialIdGenerator
from fieldflow.mapper.mapping import FieldMapping, build_mapping
from fieldflow.schema.models import FieldNode

logger = logging.getLogger(__name__)


# Fields replaced when a re-edited transformation flow is applied
FLOW_UPDATE_FIELDS = (
    "function_node",
    "visual_flow_data",
    "requires_transformation",
    "source_fields",
    "source_paths",
    "name",
)


class MappingSet:
    """
    Ordered set of mappings keyed by target path.

    Every operation returns a new MappingSet; a target path is referenced by
    at most one mapping. All snapshots derived from one set share its id
    generator, so ids stay unique across snapshots even when an older one is
    edited again.

    Usage:
    ```python
    mappings = MappingSet()
    mappings = mappings.drop(source_field, target_field)
    mappings = mappings.drop(other_source, target_field)  # merged
    ```
    """

    def __init__(
        self,
        mappings: Optional[Iterable[FieldMapping]] = None,
        id_generator=None,
    ):
        self.id_generator = id_generator or SequentialIdGenerator()
        self._mappings: List[FieldMapping] = list(mappings or [])

    def __iter__(self) -> Iterator[FieldMapping]:
        return iter(self._mappings)

    def __len__(self) -> int:
        return len(self._mappings)

    def __eq__(self, other) -> bool:
        if isinstance(other, MappingSet):
            return self._mappings == other._mappings
        return NotImplemented

    @property
    def mappings(self) -> List[FieldMapping]:
        return list(self._mappings)

    def _with(self, mappings: List[FieldMapping]) -> "MappingSet":
        return MappingSet(mappings, self.id_generator)

    def get(self, mapping_id: str) -> Optional[FieldMapping]:
        """Return mapping by id."""
        for mapping in self._mappings:
            if mapping.id == mapping_id:
                return mapping
        return None

    def find_by_target(self, target_path: str) -> Optional[FieldMapping]:
        """Return the mapping that feeds a target path."""
        for mapping in self._mappings:
            if mapping.target_path == target_path:
                return mapping
        return None

    def target_paths(self) -> Set[str]:
        return {m.target_path for m in self._mappings}

    def drop(self, source: FieldNode, target: FieldNode) -> "MappingSet":
        """
        Associate a source field with a target field.

        An already-mapped target gets the source appended (multi-source
        mapping); otherwise a new mapping is created, marked as a node
        mapping when both fields are node-mappable.
        """
        existing = self.find_by_target(target.path)

        if existing is not None:
            merged = replace(
                existing,
                source_fields=existing.source_fields + [source.name],
                source_paths=existing.source_paths + [source.path],
            )
            logger.debug(f"Added {source.path} to mapping {existing.id}")
            return self._with([merged if m.id == existing.id else m for m in self._mappings])

        node_id = None
        if source.is_node_mappable and target.is_node_mappable:
            node_id = self.id_generator.next_id("node")

        mapping = build_mapping(self.id_generator.next_id("mapping"), source, target, node_id)
        if node_id:
            logger.info(f"Created {source.type} to {target.type} node mapping {mapping.name}")

        return self._with(self._mappings + [mapping])

    def add(self, mapping: FieldMapping) -> "MappingSet":
        """Add a mapping, replacing any mapping with the same target path."""
        existing = self.find_by_target(mapping.target_path)

        if existing is None:
            return self._with(self._mappings + [mapping])

        logger.info(f"Replacing mapping {existing.id} for target {mapping.target_path}")
        return self._with([mapping if m.id == existing.id else m for m in self._mappings])

    def extend(self, mappings: Iterable[FieldMapping]) -> "MappingSet":
        """Add several mappings in order."""
        result = self
        for mapping in mappings:
            result = result.add(mapping)
        return result

    def update(self, mapping_id: str, **changes) -> "MappingSet":
        """
        Partially update a mapping.

        Args:
            mapping_id: Id of the mapping
            **changes: FieldMapping attributes to overwrite

        Raises:
            KeyError: If no mapping has the given id
        """
        if self.get(mapping_id) is None:
            raise KeyError(f"Mapping not found: {mapping_id}")

        return self._with([
            replace(m, **changes) if m.id == mapping_id else m
            for m in self._mappings
        ])

    def apply_flow(self, mapping: FieldMapping, existing_id: Optional[str] = None) -> "MappingSet":
        """
        Apply a mapping saved from a transformation flow.

        When the flow was opened on an existing mapping, the flow-related
        fields are merged into it; otherwise the mapping is added.
        """
        if existing_id and self.get(existing_id) is not None:
            changes = {name: getattr(mapping, name) for name in FLOW_UPDATE_FIELDS}
            return self.update(existing_id, **changes)

        return self.add(mapping)

    def remove(self, mapping_id: str) -> "MappingSet":
        """Remove a mapping; unknown ids are ignored."""
        return self._with([m for m in self._mappings if m.id != mapping_id])

    def clear(self) -> "MappingSet":
        """Remove all mappings."""
        return self._with([])

    def to_list(self) -> List[dict]:
        """Convert to list of dictionaries."""
        return [m.to_dict() for m in self._mappings]
