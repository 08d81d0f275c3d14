from .registry import FunctionCatalog, FunctionDescriptor, FunctionParameter, BUILTIN_FUNCTIONS

__all__ = ["FunctionCatalog", "FunctionDescriptor", "FunctionParameter", "BUILTIN_FUNCTIONS"]
