"""
Catalog Loader Module for ZoneStack

This module provides dynamic loading of catalog configuration files. A
catalog pins the enumerations, defaults, naming suffixes and external
provisioning module sources used by the validator, graph builder and
Terraform renderer.

"""

from typing import Any, Dict, Optional
import importlib
import logging

from stackcore.exceptions import ConfigurationError

# Configure logging
logger = logging.getLogger(__name__)

# Module name mapping for each catalog
CATALOG_MODULES = {
    "ibm": "stackcore.config.catalog_ibm",
}

SUPPORTED_CATALOGS = ["ibm"]

DEFAULT_CATALOG = "ibm"

REQUIRED_ATTRIBUTES = [
    "CATALOG_NAME",
    "REGIONS",
    "NAME_SUFFIXES",
    "MODULE_SOURCES",
    "NODE_OUTPUTS",
]


def load_catalog(name: str = DEFAULT_CATALOG) -> Any:
    """
    Load a catalog configuration module dynamically.

    Args:
        name: Catalog name (currently only 'ibm')

    Returns:
        Catalog module with constants and mappings

    Raises:
        ValueError: If catalog not supported
        ConfigurationError: If catalog module cannot be loaded or is incomplete

    Examples:
        >>> catalog = load_catalog('ibm')
        >>> catalog.CATALOG_NAME
        'IBM Cloud'
    """
    name = name.lower()
    if name not in SUPPORTED_CATALOGS:
        raise ValueError(
            f"Catalog '{name}' not supported. "
            f"Must be one of: {', '.join(SUPPORTED_CATALOGS)}"
        )

    module_name = CATALOG_MODULES.get(name)
    if not module_name:
        raise ConfigurationError(f"No configuration module mapped for catalog '{name}'")

    try:
        catalog = importlib.import_module(module_name)
    except ImportError as e:
        logger.error(f"Failed to import catalog '{name}': {e}")
        raise ConfigurationError(
            f"Could not load catalog '{name}'. "
            f"Module '{module_name}' not found or has import errors. "
            f"Error: {e}"
        ) from e

    validate_catalog_module(catalog, name)
    logger.debug(f"Loaded catalog '{name}' from {module_name}")
    return catalog


def validate_catalog_module(catalog: Any, name: str) -> bool:
    """
    Validate that a catalog module has the required attributes and that
    every node kind with declared outputs also has a module source.

    Raises:
        ConfigurationError: If validation fails
    """
    missing_attrs = [attr for attr in REQUIRED_ATTRIBUTES if not hasattr(catalog, attr)]
    if missing_attrs:
        raise ConfigurationError(
            f"Catalog '{name}' is missing required attributes: "
            f"{', '.join(missing_attrs)}"
        )

    unsourced = sorted(set(catalog.NODE_OUTPUTS) - set(catalog.MODULE_SOURCES))
    if unsourced:
        raise ConfigurationError(
            f"Catalog '{name}' declares outputs for kinds without a module source",
            context={"kinds": ",".join(unsourced)},
        )
    return True


def module_source(
    catalog: Any, kind: str, overrides: Optional[Dict[str, Dict[str, str]]] = None
) -> Dict[str, str]:
    """Return the module source/version pin for a node kind.

    Overrides let an operator swap in a different module for a single kind
    without touching the catalog.
    """
    if overrides and kind in overrides:
        return dict(overrides[kind])
    if kind not in catalog.MODULE_SOURCES:
        raise ConfigurationError(
            f"No provisioning module registered for kind '{kind}'",
            context={"catalog": catalog.CATALOG_NAME},
        )
    return dict(catalog.MODULE_SOURCES[kind])
