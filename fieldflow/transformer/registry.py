"""Catalog of transformation functions available to flow graphs."""
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


# Parameters with these names take constant values only
CONSTANT_ONLY_PARAMETERS = ("delimiter", "separator")


@dataclass
class FunctionParameter:
    """One input of a transformation function."""

    name: str
    type: str = "string"  # "string", "number", "boolean", "array"
    required: bool = True
    description: str = ""

    @property
    def accepts_connection(self) -> bool:
        """Check if a source field may be wired into this parameter"""
        lowered = self.name.lower()
        return not any(word in lowered for word in CONSTANT_ONLY_PARAMETERS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "required": self.required,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunctionParameter":
        return cls(
            name=data["name"],
            type=data.get("type", "string"),
            required=bool(data.get("required", True)),
            description=data.get("description", ""),
        )


@dataclass
class FunctionDescriptor:
    """Describes a transformation function a flow node can bind to."""

    name: str
    category: str
    description: str = ""
    parameters: List[FunctionParameter] = field(default_factory=list)

    def get_parameter(self, name: str) -> Optional[FunctionParameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "parameters": [p.to_dict() for p in self.parameters],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunctionDescriptor":
        return cls(
            name=data["name"],
            category=data.get("category", "custom"),
            description=data.get("description", ""),
            parameters=[FunctionParameter.from_dict(p) for p in data.get("parameters", [])],
        )


def _fn(name: str, category: str, description: str, *params) -> FunctionDescriptor:
    return FunctionDescriptor(
        name=name,
        category=category,
        description=description,
        parameters=[FunctionParameter(*p) for p in params],
    )


BUILTIN_FUNCTIONS = [
    # Math
    _fn("add", "math", "Add two numbers", ("a", "number"), ("b", "number")),
    _fn("subtract", "math", "Subtract two numbers", ("a", "number"), ("b", "number")),
    _fn("multiply", "math", "Multiply two numbers", ("a", "number"), ("b", "number")),
    _fn("divide", "math", "Divide two numbers", ("a", "number"), ("b", "number")),
    _fn("absolute", "math", "Get absolute value of a number", ("value", "number")),
    _fn("round", "math", "Round a number", ("value", "number")),
    _fn("ceil", "math", "Round a number up", ("value", "number")),
    _fn("floor", "math", "Round a number down", ("value", "number")),
    _fn("max", "math", "Greater of two numbers", ("a", "number"), ("b", "number")),
    _fn("min", "math", "Lesser of two numbers", ("a", "number"), ("b", "number")),
    _fn(
        "formatNumber", "math", "Format a number with a fixed number of digits",
        ("value", "number"), ("totalDigits", "number"), ("decimals", "number", False),
    ),
    _fn("sum", "math", "Sum an array of numbers", ("values", "array")),
    _fn("average", "math", "Average of an array of numbers", ("values", "array")),
    _fn("count", "math", "Count array entries", ("values", "array")),
    # Text
    _fn(
        "concat", "text", "Concatenate strings",
        ("string1", "string"), ("string2", "string"), ("delimiter", "string", False),
    ),
    _fn(
        "substring", "text", "Extract part of a string",
        ("text", "string"), ("start", "number"), ("end", "number", False),
    ),
    _fn("toUpperCase", "text", "Convert to upper case", ("text", "string")),
    _fn("toLowerCase", "text", "Convert to lower case", ("text", "string")),
    _fn("trim", "text", "Remove leading and trailing whitespace", ("text", "string")),
    _fn("length", "text", "Length of a string", ("text", "string")),
    _fn(
        "replace", "text", "Replace occurrences of a value",
        ("text", "string"), ("searchValue", "string"), ("replaceValue", "string"),
    ),
    _fn("split", "text", "Split a string", ("text", "string"), ("separator", "string")),
    _fn("indexOf", "text", "Position of a value in a string", ("text", "string"), ("searchValue", "string")),
    # Boolean
    _fn("and", "boolean", "Logical AND", ("a", "boolean"), ("b", "boolean")),
    _fn("or", "boolean", "Logical OR", ("a", "boolean"), ("b", "boolean")),
    _fn("not", "boolean", "Logical NOT", ("value", "boolean")),
    _fn("if", "boolean", "Choose a value by condition",
        ("condition", "boolean"), ("trueValue", "string"), ("falseValue", "string")),
    _fn("isNil", "boolean", "Check if a value is empty", ("value", "string")),
    # Conversion
    _fn("toNumber", "conversion", "Convert a string to a number", ("value", "string")),
    _fn("toString", "conversion", "Convert a value to a string", ("value", "string")),
    _fn("toBoolean", "conversion", "Convert a value to a boolean", ("value", "string")),
    # Date
    _fn(
        "formatDate", "date", "Reformat a date",
        ("date", "string"), ("inputFormat", "string"), ("outputFormat", "string"),
    ),
    _fn("currentDate", "date", "Current date", ("format", "string", False)),
    # Node
    _fn("createIf", "node", "Create target only when condition holds", ("condition", "boolean")),
    _fn("exists", "node", "Check if a source node exists", ("node", "string")),
]


class FunctionCatalog:
    """Registry of available transformation functions."""

    def __init__(self, functions: Optional[List[FunctionDescriptor]] = None):
        """Initialize catalog with the built-in functions."""
        self.functions: Dict[str, FunctionDescriptor] = {}
        for descriptor in functions if functions is not None else BUILTIN_FUNCTIONS:
            self.register(descriptor)

    def register(self, descriptor: FunctionDescriptor) -> None:
        """Register (or overwrite) a function."""
        self.functions[descriptor.name] = descriptor

    def get(self, name: str) -> FunctionDescriptor:
        """
        Get function by name.

        Raises:
            KeyError: If function is unknown
        """
        if name not in self.functions:
            raise KeyError(f"Unknown function: {name}")
        return self.functions[name]

    def categories(self) -> List[str]:
        return sorted({f.category for f in self.functions.values()})

    def by_category(self) -> Dict[str, List[FunctionDescriptor]]:
        """Group functions by category."""
        grouped: Dict[str, List[FunctionDescriptor]] = {}
        for descriptor in self.functions.values():
            grouped.setdefault(descriptor.category, []).append(descriptor)
        return grouped

    @staticmethod
    def custom(name: str = "custom", description: str = "Custom function") -> FunctionDescriptor:
        """Descriptor for a user-defined function with no declared parameters."""
        return FunctionDescriptor(name=name, category="custom", description=description)
