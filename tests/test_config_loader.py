"""
Unit tests for config_loader module.

Tests the dynamic catalog loading functionality including:
- Loading the IBM Cloud catalog
- Validation of catalog modules
- Error handling for unsupported or incomplete catalogs
- Module source lookup and overrides
"""

import sys
import types
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from stackcore.config_loader import (
    CATALOG_MODULES,
    SUPPORTED_CATALOGS,
    ConfigurationError,
    load_catalog,
    module_source,
    validate_catalog_module,
)


class TestLoadCatalog:
    """Tests for load_catalog() function."""

    def test_load_ibm_catalog(self):
        catalog = load_catalog("ibm")

        assert catalog.CATALOG_NAME == "IBM Cloud"
        assert "us-south" in catalog.REGIONS
        assert "dal10" in catalog.WORKSPACE_ZONES

    def test_case_insensitive(self):
        assert load_catalog("IBM") is load_catalog("ibm")

    def test_default_catalog(self):
        assert load_catalog().CATALOG_NAME == "IBM Cloud"

    def test_unsupported_catalog(self):
        with pytest.raises(ValueError) as excinfo:
            load_catalog("aws")
        assert "not supported" in str(excinfo.value)

    def test_every_supported_catalog_mapped(self):
        for name in SUPPORTED_CATALOGS:
            assert name in CATALOG_MODULES

    def test_outputs_and_sources_aligned(self):
        catalog = load_catalog()
        assert set(catalog.NODE_OUTPUTS) == set(catalog.MODULE_SOURCES)


class TestValidateCatalogModule:
    """Tests for validate_catalog_module() function."""

    def make_catalog(self, **attrs):
        catalog = types.ModuleType("fake_catalog")
        for key, value in attrs.items():
            setattr(catalog, key, value)
        return catalog

    def test_missing_attributes(self):
        catalog = self.make_catalog(CATALOG_NAME="Fake")
        with pytest.raises(ConfigurationError) as excinfo:
            validate_catalog_module(catalog, "fake")
        assert "REGIONS" in str(excinfo.value)

    def test_outputs_without_source(self):
        catalog = self.make_catalog(
            CATALOG_NAME="Fake",
            REGIONS=[],
            NAME_SUFFIXES={},
            MODULE_SOURCES={},
            NODE_OUTPUTS={"network": ["vpc_id"]},
        )
        with pytest.raises(ConfigurationError) as excinfo:
            validate_catalog_module(catalog, "fake")
        assert "kinds=network" in str(excinfo.value)

    def test_valid_catalog(self):
        assert validate_catalog_module(load_catalog(), "ibm") is True


class TestModuleSource:
    def test_returns_copy(self):
        catalog = load_catalog()
        source = module_source(catalog, "vpn")
        source["version"] = "changed"
        assert catalog.MODULE_SOURCES["vpn"]["version"] != "changed"

    def test_override(self):
        override = {"vpn": {"source": "./local/vpn", "version": "0.1.0"}}
        assert module_source(load_catalog(), "vpn", override)["source"] == "./local/vpn"

    def test_unknown_kind(self):
        with pytest.raises(ConfigurationError):
            module_source(load_catalog(), "database")
