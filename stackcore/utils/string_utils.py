"""String manipulation utilities for ZoneStack.

This module provides the deterministic naming rules shared by the graph
builder and the renderers.
"""

import re
from typing import Any, Dict


def derive_name(prefix: str, suffix: str) -> str:
    """Join the global prefix and a per-resource suffix.

    No case transform or alternate separator is applied; both parts are
    validated or catalog-defined before they get here.

    Args:
        prefix: Global deployment prefix
        suffix: Per-resource suffix from the catalog

    Returns:
        Display name in the form ``prefix-suffix``
    """
    return f"{prefix}-{suffix}"


def hyphenate(text: str) -> str:
    """Replace spaces and dots with hyphens.

    This is the only substitution the naming rules allow and it is applied
    to VPN connection names only.

    Args:
        text: Source text

    Returns:
        Text with every space and dot turned into a hyphen
    """
    return text.replace(" ", "-").replace(".", "-")


def format_field_path(*parts: Any) -> str:
    """Build a dotted/indexed field path such as ``vpn_connections[1].preshared_key``.

    Args:
        *parts: Field names (str) and list indices (int)

    Returns:
        Joined path string
    """
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def parse_override(expression: str) -> Dict[str, str]:
    """Split a ``key=value`` CLI override into a one-item dict.

    Args:
        expression: Override text as typed on the command line

    Returns:
        ``{key: value}`` with surrounding whitespace removed from the key

    Raises:
        ValueError: If the expression has no ``=`` or an empty key
    """
    if "=" not in expression:
        raise ValueError(f"Override '{expression}' must be in key=value form")
    key, value = expression.split("=", 1)
    key = key.strip()
    if not key or not re.match(r"^[A-Za-z_][A-Za-z0-9_]*$", key):
        raise ValueError(f"Override '{expression}' has an invalid key")
    return {key: value}
