"""Unit tests for stackcore/utils/string_utils.py"""

import unittest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from stackcore.utils.string_utils import (
    derive_name,
    format_field_path,
    hyphenate,
    parse_override,
)


class TestDeriveName(unittest.TestCase):
    """Test derive_name() naming rule."""

    def test_prefix_and_suffix_joined(self):
        self.assertEqual(derive_name("lz", "vpc"), "lz-vpc")

    def test_no_case_transform(self):
        self.assertEqual(derive_name("lz", "Mgmt"), "lz-Mgmt")


class TestHyphenate(unittest.TestCase):
    """Test hyphenate() substitution used for VPN connection names."""

    def test_spaces_and_dots_replaced(self):
        self.assertEqual(hyphenate("dc 1.primary"), "dc-1-primary")

    def test_other_characters_untouched(self):
        self.assertEqual(hyphenate("site_A"), "site_A")


class TestFormatFieldPath(unittest.TestCase):
    """Test format_field_path() for nested field references."""

    def test_single_field(self):
        self.assertEqual(format_field_path("prefix"), "prefix")

    def test_indexed_attribute(self):
        self.assertEqual(
            format_field_path("vpn_connections", 1, "preshared_key"),
            "vpn_connections[1].preshared_key",
        )

    def test_nested_list_index(self):
        self.assertEqual(
            format_field_path("vpn_connections", 0, "peer_cidrs", 2),
            "vpn_connections[0].peer_cidrs[2]",
        )


class TestParseOverride(unittest.TestCase):
    """Test parse_override() for --var expressions."""

    def test_simple_pair(self):
        self.assertEqual(parse_override("prefix=lz"), {"prefix": "lz"})

    def test_value_may_contain_equals(self):
        self.assertEqual(parse_override("tags=[\"a=b\"]"), {"tags": "[\"a=b\"]"})

    def test_missing_equals_raises(self):
        with self.assertRaises(ValueError):
            parse_override("prefix")

    def test_invalid_key_raises(self):
        with self.assertRaises(ValueError):
            parse_override("=lz")
        with self.assertRaises(ValueError):
            parse_override("1prefix=lz")


if __name__ == "__main__":
    unittest.main()
