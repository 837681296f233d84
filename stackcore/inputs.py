"""Input source module for ZoneStack.

This module assembles the raw input set from variable files (.tfvars/.hcl
via python-hcl2, YAML, JSON), environment variables and command line
overrides, in increasing order of precedence. Values are not validated
here; ``stackcore.validator`` does that on the merged result.
"""

import json
import logging
import os
from contextlib import suppress
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import click
import hcl2
import yaml

import stackcore.config_loader as config_loader
from stackcore.exceptions import InputFileError
from stackcore.schema import input_fields
from stackcore.utils.string_utils import parse_override

logger = logging.getLogger(__name__)

# Environment variable prefixes, later entries win
ENV_PREFIXES = ["TF_VAR_", "ZONESTACK_VAR_"]

API_KEY_ENV_VARS = ["IC_API_KEY", "IBMCLOUD_API_KEY"]


def _unquote(value: Any) -> Any:
    """Strip literal double quotes some python-hcl2 releases keep on strings."""
    if isinstance(value, str) and len(value) >= 2 and value[0] == value[-1] == '"':
        return value[1:-1]
    if isinstance(value, dict):
        return {_unquote(k): _unquote(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_unquote(v) for v in value]
    return value


def read_varfile(filepath: str) -> Dict[str, Any]:
    """Read and parse one variable file.

    ``.yaml``/``.yml`` files are parsed with PyYAML, ``.json`` with json, and
    anything else (``.tfvars``, ``.hcl``) is tried as JSON first and then as
    HCL2.

    Args:
        filepath: Path to the variable file

    Returns:
        dict: Parsed top-level variables

    Raises:
        InputFileError: If the file is missing, unparsable or not a mapping
    """
    path = Path(filepath)
    if not path.exists():
        raise InputFileError("Variable file not found", context={"path": filepath})

    suffix = path.suffix.lower()
    try:
        with open(path, "r") as f:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            elif suffix == ".json":
                data = json.load(f)
            else:
                data = None
                with suppress(json.JSONDecodeError):
                    data = json.load(f)
                if data is None:
                    f.seek(0)
                    data = _unquote(hcl2.load(f))
    except Exception as e:
        raise InputFileError(
            "Failed to parse variable file",
            context={"path": filepath, "error": str(e)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InputFileError(
            "Variable file must contain a mapping of names to values",
            context={"path": filepath},
        )
    return data


def _coerce(name: str, text: str, string_fields: Sequence[str]) -> Any:
    """Parse an environment or CLI value: strings stay strings, the rest is JSON."""
    if name in string_fields:
        return text
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _string_fields(catalog: Any) -> List[str]:
    return [spec.name for spec in input_fields(catalog) if spec.kind == "str"]


def read_environment(
    environ: Mapping[str, str], catalog: Optional[Any] = None
) -> Dict[str, Any]:
    """Collect ``TF_VAR_<name>`` and ``ZONESTACK_VAR_<name>`` values for known fields."""
    catalog = catalog or config_loader.load_catalog()
    string_fields = _string_fields(catalog)
    known = [spec.name for spec in input_fields(catalog)]
    values: Dict[str, Any] = {}
    for prefix in ENV_PREFIXES:
        for name in known:
            text = environ.get(f"{prefix}{name}")
            if text is not None:
                values[name] = _coerce(name, text, string_fields)
    return values


def read_overrides(
    overrides: Sequence[str], catalog: Optional[Any] = None
) -> Dict[str, Any]:
    """Parse ``key=value`` command line overrides.

    Raises:
        InputFileError: If an override is malformed
    """
    catalog = catalog or config_loader.load_catalog()
    string_fields = _string_fields(catalog)
    values: Dict[str, Any] = {}
    for expression in overrides:
        try:
            pair = parse_override(expression)
        except ValueError as e:
            raise InputFileError(str(e)) from e
        for name, text in pair.items():
            values[name] = _coerce(name, text, string_fields)
    return values


def load_inputs(
    varfiles: Sequence[str] = (),
    overrides: Sequence[str] = (),
    environ: Optional[Mapping[str, str]] = None,
    catalog: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Merge every input source into one raw input set.

    Precedence, lowest first: varfiles in the order given, environment
    variables, command line overrides.

    Args:
        varfiles: Variable file paths
        overrides: ``key=value`` expressions
        environ: Environment mapping (defaults to os.environ)
        catalog: Catalog module (defaults to the 'ibm' catalog)

    Returns:
        dict: Raw, unvalidated parameters
    """
    catalog = catalog or config_loader.load_catalog()
    environ = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}
    for varfile in varfiles:
        values = read_varfile(varfile)
        click.echo(f"  Loaded variable file: {varfile}")
        logger.debug(f"{varfile} supplies: {', '.join(sorted(values))}")
        raw.update(values)

    env_values = read_environment(environ, catalog)
    if env_values:
        logger.debug(f"Environment supplies: {', '.join(sorted(env_values))}")
    raw.update(env_values)

    cli_values = read_overrides(overrides, catalog)
    if cli_values:
        logger.debug(f"Command line supplies: {', '.join(sorted(cli_values))}")
    raw.update(cli_values)
    return raw


def credential_present(
    api_key_file: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> bool:
    """Report whether an API credential is available.

    The credential belongs to the provisioning engine; its contents are
    never read beyond checking that it is non-empty.
    """
    environ = os.environ if environ is None else environ
    if api_key_file:
        path = Path(api_key_file)
        return path.is_file() and path.stat().st_size > 0
    return any(environ.get(name) for name in API_KEY_ENV_VARS)
