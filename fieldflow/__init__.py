"""FieldFlow Mapper - field mapping and transformation graph engine."""

__version__ = "0.1.0"
