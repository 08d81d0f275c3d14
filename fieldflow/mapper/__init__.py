"""
Mapping Module

- FieldMapping / FunctionNodeData: persisted mapping records
- MappingSet: copy-on-write mapping collection (drop, merge, replace)
- AutoMapper: name/type based matcher
"""

from .mapping import FieldMapping, FunctionNodeData, Position, NODE_MAPPING, VISUAL_FLOW
from .mapping_set import MappingSet
from .auto_mapper import AutoMapper, AutoMapResult, AutoMapStatus
from .ids import SequentialIdGenerator, UuidIdGenerator

__all__ = [
    "FieldMapping",
    "FunctionNodeData",
    "Position",
    "NODE_MAPPING",
    "VISUAL_FLOW",
    "MappingSet",
    "AutoMapper",
    "AutoMapResult",
    "AutoMapStatus",
    "SequentialIdGenerator",
    "UuidIdGenerator",
]
