from .json_exporter import MappingExporter, load_mappings

__all__ = ["MappingExporter", "load_mappings"]
