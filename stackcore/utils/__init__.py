"""Utility modules for ZoneStack.

This package contains utility modules for naming rules and graph
processing.
"""

from .string_utils import derive_name, hyphenate, format_field_path, parse_override
from .graph_utils import (
    sort_graphdict,
    find_circular_refs,
    topological_order,
    dependants_of,
)

__all__ = [
    # String utilities
    "derive_name",
    "hyphenate",
    "format_field_path",
    "parse_override",
    # Graph utilities
    "sort_graphdict",
    "find_circular_refs",
    "topological_order",
    "dependants_of",
]
