"""JSON exporter."""
import json
import logging
from pathlib import Path
from datetime import datetime
from typing import List, Iterable, Optional

from fieldflow.mapper.mapping import FieldMapping

logger = logging.getLogger(__name__)


class MappingExporter:
    """Export field mappings to JSON."""

    def export(
        self,
        output_file: Path,
        mappings: Iterable[FieldMapping],
        mapping_name: Optional[str] = None,
        mapping_type: Optional[str] = None,
    ) -> None:
        """Export to JSON file."""
        output_file = Path(output_file)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        mappings = list(mappings)
        data = {
            "metadata": {
                "created_at": datetime.now().isoformat(),
                "name": mapping_name,
                "mapping_type": mapping_type,
                "total_mappings": len(mappings),
                "node_mappings": sum(1 for m in mappings if m.is_node_mapping),
                "visual_flows": sum(1 for m in mappings if m.is_visual_flow),
            },
            "mappings": [m.to_dict() for m in mappings],
        }

        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)

        logger.info(f"Exported {len(mappings)} mappings to {output_file}")


def load_mappings(path: Path) -> List[FieldMapping]:
    """
    Load mappings from an exported file.

    Accepts the export envelope or a bare JSON array of mappings.

    Raises:
        ValueError: If the file holds neither
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("mappings")

    if not isinstance(data, list):
        raise ValueError(f"No mappings found in {path}")

    return [FieldMapping.from_dict(item) for item in data]
