"""Custom exception types for ZoneStack.

This module defines the exception hierarchy for ZoneStack errors, enabling
precise error handling and contextual error messages throughout the application.

Exception Hierarchy:
    ZoneStackError (base)
    ├── ValidationError - One or more input fields failed their rules
    ├── StructuralError - Resource graph violates an enablement or ordering invariant
    ├── ProvisioningError - A provisioner failed to materialize a node
    ├── InputFileError - Variable file could not be read or parsed
    └── ConfigurationError - Module catalog could not be loaded
"""

from typing import Any, Dict, List, Optional


class ZoneStackError(Exception):
    """Base exception for all ZoneStack-specific errors.

    Attributes:
        message: Human-readable error description
        context: Additional contextual information (e.g., field names, node IDs)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """Initialize ZoneStackError.

        Args:
            message: Human-readable error description
            context: Optional dict with additional context (node IDs, paths, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class ValidationError(ZoneStackError):
    """Raised when the raw input set fails one or more validation rules.

    Every violated rule is collected before raising so the operator can fix
    all input errors in one iteration.

    Attributes:
        failures: Ordered list of ValidationFailure tuples (field, rule, message)
    """

    def __init__(self, failures: List[Any], context: Optional[Dict[str, Any]] = None):
        count = len(failures)
        noun = "rule" if count == 1 else "rules"
        super().__init__(f"Input validation failed: {count} {noun} violated", context)
        self.failures = list(failures)

    def __str__(self) -> str:
        lines = [super().__str__()]
        for failure in self.failures:
            lines.append(f"  - {failure.field} [{failure.rule}]: {failure.message}")
        return "\n".join(lines)


class StructuralError(ZoneStackError):
    """Raised when an assembled resource graph breaks a structural invariant.

    Examples:
        - An edge targets a node that is absent while its consumer is present
        - The dependency graph contains a cycle
        - A reference names an attribute the target node does not declare
    """

    pass


class ProvisioningError(ZoneStackError):
    """Raised by a provisioner when a single node cannot be materialized.

    The engine records it against the failing node and carries on with
    independent nodes. Already materialized nodes are left untouched.
    """

    def __init__(
        self, message: str, node_id: str, context: Optional[Dict[str, Any]] = None
    ):
        context = dict(context or {})
        context.setdefault("node", node_id)
        super().__init__(message, context)
        self.node_id = node_id


class InputFileError(ZoneStackError):
    """Raised when a variable file cannot be read or parsed.

    Examples:
        - File does not exist
        - Invalid HCL2, YAML or JSON syntax
        - Top level of the document is not a mapping
    """

    pass


class ConfigurationError(ZoneStackError):
    """Raised when a module catalog cannot be loaded or is incomplete."""

    pass
