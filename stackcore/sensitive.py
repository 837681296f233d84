"""Wrapper for input values that must never be echoed.

SSH public keys and VPN preshared keys travel through the validator,
graph builder and renderers inside a ``Sensitive`` so that ``repr``,
``str``, logging and JSON dumps all show a placeholder instead of the
secret. Callers that genuinely need the value (a provisioner) call
``reveal()``.
"""

from typing import Any

MASK = "(sensitive value)"


class Sensitive:
    __slots__ = ("_value",)

    def __init__(self, value: Any):
        self._value = value

    def reveal(self) -> Any:
        return self._value

    def __len__(self) -> int:
        return len(self._value)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Sensitive):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("Sensitive", self._value))

    def __repr__(self) -> str:
        return f"Sensitive({MASK!r})"

    def __str__(self) -> str:
        return MASK


def mask(value: Any) -> Any:
    """Return a copy of ``value`` with every Sensitive leaf replaced by MASK."""
    if isinstance(value, Sensitive):
        return MASK
    if isinstance(value, dict):
        return {k: mask(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [mask(v) for v in value]
    return value


def reveal(value: Any) -> Any:
    """Return a copy of ``value`` with every Sensitive leaf unwrapped."""
    if isinstance(value, Sensitive):
        return value.reveal()
    if isinstance(value, dict):
        return {k: reveal(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [reveal(v) for v in value]
    return value
