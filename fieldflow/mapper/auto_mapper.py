"""Name/type based auto-mapping between two structure trees."""
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Iterable, Set

from fieldflow.mapper.ids import SequentialIdGenerator
from fieldflow.mapper.mapping import FieldMapping, build_mapping
from fieldflow.schema.models import FieldNode
from fieldflow.schema.tree import collect_all

logger = logging.getLogger(__name__)


class AutoMapStatus(str, Enum):
    """Outcome of an auto-mapping run"""
    CREATED = "created"
    NO_MATCH = "no_match"
    CONFLICT = "conflict"
    MISSING_STRUCTURE = "missing_structure"


@dataclass
class AutoMapResult:
    """New mappings proposed by one run, plus the user-facing outcome."""

    status: AutoMapStatus
    mappings: List[FieldMapping] = field(default_factory=list)
    message: str = ""

    @property
    def count(self) -> int:
        return len(self.mappings)


class AutoMapper:
    """
    Propose mappings between source and target trees.

    Matching rules:
    - derived field names must be equal
    - a candidate with the same type is preferred, but not required
    - the first candidate in traversal order wins among equals
    - a target path is used at most once (existing mappings included)
    """

    def __init__(self, id_generator=None):
        """Initialize mapper with an optional id generator."""
        self.id_generator = id_generator or SequentialIdGenerator()

    def auto_map(
        self,
        source_tree: List[FieldNode],
        target_tree: List[FieldNode],
        existing_mappings: Optional[Iterable[FieldMapping]] = None,
        selected_source: Optional[FieldNode] = None,
        selected_target: Optional[FieldNode] = None,
    ) -> AutoMapResult:
        """
        Generate mappings in bulk or for a selected pair of nodes.

        Args:
            source_tree: Source structure
            target_tree: Target structure
            existing_mappings: Mappings already in place; their targets are skipped
            selected_source: Selected source field (scoped mode)
            selected_target: Selected target field (scoped mode)

        Returns:
            AutoMapResult with the new mappings only
        """
        if not source_tree or not target_tree:
            return AutoMapResult(
                AutoMapStatus.MISSING_STRUCTURE,
                message="Please select both source and target structures first",
            )

        used_targets = {m.target_path for m in existing_mappings or []}

        if selected_source is not None and selected_target is not None:
            return self._map_selected(selected_source, selected_target, used_targets)

        mappings = self._match(collect_all(source_tree), collect_all(target_tree), used_targets)

        if not mappings:
            return AutoMapResult(
                AutoMapStatus.NO_MATCH,
                message="Could not find any matching field names between source and target",
            )

        logger.info(f"Auto-mapping created {len(mappings)} mappings")
        return AutoMapResult(
            AutoMapStatus.CREATED,
            mappings,
            message=f"Created {len(mappings)} automatic mappings",
        )

    def _map_selected(
        self,
        source: FieldNode,
        target: FieldNode,
        used_targets: Set[str],
    ) -> AutoMapResult:
        """Scoped mode: map exactly the selected pair (and their descendants)."""
        if source.is_node_mappable and target.is_node_mappable:
            mappings = []

            # The selected pair is always mapped, whatever their names
            if target.path not in used_targets:
                mappings.append(self._create(source, target))
                used_targets.add(target.path)

            mappings.extend(
                self._match(
                    collect_all(source.children),
                    collect_all(target.children),
                    used_targets,
                )
            )

            if not mappings:
                return AutoMapResult(
                    AutoMapStatus.NO_MATCH,
                    message="Could not find any matching field names within the selected nodes",
                )

            logger.info(f"Node mapping {source.path} -> {target.path} created {len(mappings)} mappings")
            return AutoMapResult(
                AutoMapStatus.CREATED,
                mappings,
                message=f"Created {len(mappings)} mappings for matching fields within selected nodes",
            )

        if target.path in used_targets:
            logger.info(f"Target {target.path} is already mapped")
            return AutoMapResult(
                AutoMapStatus.CONFLICT,
                message="The selected target field is already mapped",
            )

        mapping = build_mapping(self.id_generator.next_id("mapping"), source, target)
        return AutoMapResult(
            AutoMapStatus.CREATED,
            [mapping],
            message=f"Mapped {source.name} to {target.name}",
        )

    def _match(
        self,
        sources: List[FieldNode],
        targets: List[FieldNode],
        used_targets: Set[str],
    ) -> List[FieldMapping]:
        """Match source nodes to target nodes by derived field name."""
        targets_by_name: Dict[str, List[FieldNode]] = OrderedDict()
        for target in targets:
            targets_by_name.setdefault(target.field_name, []).append(target)

        mappings = []

        for source in sources:
            candidates = targets_by_name.get(source.field_name, [])
            target = self._pick_candidate(source, candidates, used_targets)

            if target is None:
                continue

            mappings.append(self._create(source, target))
            used_targets.add(target.path)
            logger.debug(f"Matched {source.path} -> {target.path}")

        return mappings

    @staticmethod
    def _pick_candidate(
        source: FieldNode,
        candidates: List[FieldNode],
        used_targets: Set[str],
    ) -> Optional[FieldNode]:
        """First unused candidate of the same type, else first unused candidate."""
        unused = [c for c in candidates if c.path not in used_targets]

        for candidate in unused:
            if candidate.type == source.type:
                return candidate

        return unused[0] if unused else None

    def _create(self, source: FieldNode, target: FieldNode) -> FieldMapping:
        node_id = None
        if source.is_node_mappable and target.is_node_mappable:
            node_id = self.id_generator.next_id("node")

        return build_mapping(self.id_generator.next_id("mapping"), source, target, node_id)
