"""Mapping validation."""
from collections import Counter
from typing import List

from fieldflow.flow.graph import FlowGraph
from fieldflow.mapper.mapping import FieldMapping
from fieldflow.schema.models import FieldNode
from fieldflow.schema.tree import find_field


class MappingValidator:
    """Validates mappings against the source and target structures."""

    def validate(
        self,
        mappings: List[FieldMapping],
        source_tree: List[FieldNode],
        target_tree: List[FieldNode],
    ) -> List[str]:
        """Validate mappings. Returns a list of error messages (empty when valid)."""
        errors = []

        # Check for targets fed by more than one mapping
        counts = Counter(m.target_path for m in mappings)
        for path, count in counts.items():
            if count > 1:
                errors.append(f"Target {path} is mapped {count} times")

        for mapping in mappings:
            if find_field(target_tree, mapping.target_path) is None:
                errors.append(f"{mapping.name}: target {mapping.target_path} not found in target structure")

            for path in mapping.source_paths:
                if find_field(source_tree, path) is None:
                    errors.append(f"{mapping.name}: source {path} not found in source structure")

            if len(mapping.source_fields) != len(mapping.source_paths):
                errors.append(
                    f"{mapping.name}: {len(mapping.source_fields)} source fields "
                    f"but {len(mapping.source_paths)} source paths"
                )

            if mapping.is_visual_flow:
                errors.extend(self._validate_flow(mapping))

        return errors

    def _validate_flow(self, mapping: FieldMapping) -> List[str]:
        if not mapping.visual_flow_data:
            return [f"{mapping.name}: visual flow mapping has no stored flow"]

        try:
            graph = FlowGraph.from_dict(mapping.visual_flow_data)
        except (KeyError, ValueError, TypeError) as e:
            return [f"{mapping.name}: stored flow could not be read ({e})"]

        if not graph.is_valid():
            return [f"{mapping.name}: stored flow has no input connected to the target"]

        return []
