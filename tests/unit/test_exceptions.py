"""Unit tests for custom exception types."""

import unittest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from stackcore.exceptions import (
    ZoneStackError,
    ValidationError,
    StructuralError,
    ProvisioningError,
    InputFileError,
    ConfigurationError,
)
from stackcore.validator import ValidationFailure


class TestZoneStackError(unittest.TestCase):
    """Test base ZoneStackError exception class."""

    def test_basic_error_message(self):
        """Test error with message only."""
        error = ZoneStackError("Test error message")
        self.assertEqual(error.message, "Test error message")
        self.assertEqual(error.context, {})
        self.assertEqual(str(error), "Test error message")

    def test_error_with_context(self):
        """Test error with contextual information."""
        error = ZoneStackError("Bad file", context={"path": "lz.tfvars", "line": 3})
        self.assertIn("path=lz.tfvars", str(error))
        self.assertIn("line=3", str(error))

    def test_subclasses_share_base(self):
        for cls in (StructuralError, InputFileError, ConfigurationError):
            self.assertIsInstance(cls("x"), ZoneStackError)


class TestValidationError(unittest.TestCase):
    """Test ValidationError carries every failure."""

    def test_failures_listed_in_message(self):
        failures = [
            ValidationFailure("prefix", "length", "prefix too long"),
            ValidationFailure("vpc_subnet_cidr", "cidr", "bad cidr"),
        ]
        error = ValidationError(failures)
        self.assertEqual(error.failures, failures)
        self.assertIn("2 rules violated", str(error))
        self.assertIn("prefix [length]: prefix too long", str(error))
        self.assertIn("vpc_subnet_cidr [cidr]: bad cidr", str(error))

    def test_single_failure_wording(self):
        error = ValidationError([ValidationFailure("region", "enum", "bad region")])
        self.assertIn("1 rule violated", str(error))


class TestProvisioningError(unittest.TestCase):
    """Test ProvisioningError records the failing node."""

    def test_node_in_context(self):
        error = ProvisioningError("Gateway missing", "vpn")
        self.assertEqual(error.node_id, "vpn")
        self.assertEqual(error.context["node"], "vpn")
        self.assertIn("node=vpn", str(error))

    def test_extra_context_kept(self):
        error = ProvisioningError("Bad", "network", context={"attributes": "x"})
        self.assertEqual(error.context, {"attributes": "x", "node": "network"})


if __name__ == "__main__":
    unittest.main()
