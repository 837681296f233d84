"""
Input Validation Module

Responsibility:
- Check the raw input set against the field declarations in stackcore.schema
  (unknown fields, missing required fields, value types, nested record shapes)
- Apply every declared ValidationRule (length, charset, enum, range, CIDR,
  collection size, preshared key length, unique connection and subnet names)
- Collect ALL failures in one pass and raise a single ValidationError
- Freeze the defaulted values into an InputSet when nothing failed

This is pure deterministic logic. Rules read raw values only and never
depend on another rule's outcome.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

import ipaddr

import stackcore.config_loader as config_loader
from stackcore.exceptions import ValidationError
from stackcore.schema import FieldSpec, InputSet, apply_defaults, build_inputset, input_fields
from stackcore.utils.string_utils import format_field_path, hyphenate

logger = logging.getLogger(__name__)

CIDR_SHAPE = re.compile(r"\d{1,3}(\.\d{1,3}){3}/\d{1,2}")
PREFIX_CHARSET = re.compile(r"[a-z0-9-]*")

TYPE_NAMES = {
    "str": "a string",
    "bool": "a boolean",
    "int": "an integer",
    "list": "a list",
    "dict": "an object",
}

# Nested record shapes: key -> (kind, required)
RECORD_SHAPES = {
    "vpn_connections": {
        "name": ("str", True),
        "peer_address": ("str", True),
        "preshared_key": ("str", True),
        "peer_cidrs": ("list", False),
        "local_cidrs": ("list", False),
    },
    "powervs_subnets": {
        "name": ("str", True),
        "cidr": ("str", True),
        "dns": ("list", False),
    },
    "ike_policy": {
        "authentication_algorithm": ("str", True),
        "encryption_algorithm": ("str", True),
        "dh_group": ("int", True),
        "ike_version": ("int", True),
        "key_lifetime": ("int", True),
    },
    "ipsec_policy": {
        "authentication_algorithm": ("str", True),
        "encryption_algorithm": ("str", True),
        "pfs": ("str", True),
        "key_lifetime": ("int", True),
    },
}


class ValidationFailure(NamedTuple):
    field: str
    rule: str
    message: str


def _is_kind(value: Any, kind: str) -> bool:
    if kind == "str":
        return isinstance(value, str)
    if kind == "bool":
        return isinstance(value, bool)
    if kind == "int":
        return isinstance(value, int) and not isinstance(value, bool)
    if kind == "list":
        return isinstance(value, list)
    if kind == "dict":
        return isinstance(value, dict)
    return True


def _select(values: Dict[str, Any], path: Tuple[Any, ...]) -> List[Tuple[str, Any]]:
    """Resolve a selector path (``"*"`` fans out over lists) to (field_path, value) pairs."""
    results: List[Tuple[Tuple[Any, ...], Any]] = [((), values)]
    for part in path:
        selected = []
        for parts, current in results:
            if part == "*":
                if isinstance(current, list):
                    selected.extend(
                        (parts + (i,), item) for i, item in enumerate(current)
                    )
            elif isinstance(current, dict) and part in current:
                selected.append((parts + (part,), current[part]))
        results = selected
    return [(format_field_path(*parts), value) for parts, value in results]


def is_ipv4_cidr(value: str) -> bool:
    """Return True if ``value`` parses as an IPv4 network in prefix notation."""
    if not CIDR_SHAPE.fullmatch(value):
        return False
    try:
        ipaddr.IPv4Network(value)
    except ValueError:
        return False
    return True


def is_ipv4_address(value: str) -> bool:
    try:
        ipaddr.IPv4Address(value)
    except ValueError:
        return False
    return True


@dataclass(frozen=True)
class ValidationRule:
    """A predicate over one selector path of the raw input set.

    Values that are not of ``kind`` are ignored; the structural type check
    reports them instead.
    """

    field: str
    rule: str
    message: str
    path: Tuple[Any, ...]
    predicate: Callable[[Any], bool]
    kind: str = "str"

    def check(self, values: Dict[str, Any]) -> List[ValidationFailure]:
        failures = []
        for field_path, value in _select(values, self.path):
            if value is None or not _is_kind(value, self.kind):
                continue
            if not self.predicate(value):
                failures.append(ValidationFailure(field_path, self.rule, self.message))
        return failures


@dataclass(frozen=True)
class RequiredWhenRule:
    """Cross-field rule: ``field`` must be set when boolean ``flag`` is true."""

    field: str
    flag: str
    rule: str = "required_when"

    @property
    def message(self) -> str:
        return f"{self.field} is required when {self.flag} is true"

    def check(self, values: Dict[str, Any]) -> List[ValidationFailure]:
        if values.get(self.flag) is True and not values.get(self.field):
            return [ValidationFailure(self.field, self.rule, self.message)]
        return []


@dataclass(frozen=True)
class UniqueRule:
    """Records of ``collection`` must not share a ``key`` once normalized.

    Derived names (and the secret variables keyed by them) come from the
    normalized form, so two raw names that normalize alike would collide.
    Every repeat after the first occurrence is reported.
    """

    field: str
    message: str
    collection: str
    key: str
    normalize: Optional[Callable[[str], str]] = None
    rule: str = "unique"

    def check(self, values: Dict[str, Any]) -> List[ValidationFailure]:
        records = values.get(self.collection)
        if not isinstance(records, list):
            return []
        failures = []
        seen = set()
        for i, record in enumerate(records):
            if not isinstance(record, dict) or not isinstance(record.get(self.key), str):
                continue
            name = record[self.key]
            if self.normalize:
                name = self.normalize(name)
            if name in seen:
                path = format_field_path(self.collection, i, self.key)
                failures.append(ValidationFailure(path, self.rule, self.message))
            seen.add(name)
        return failures


def _enum(field: str, path: Tuple[Any, ...], allowed: List[Any], kind: str = "str"):
    choices = ", ".join(str(a) for a in allowed)
    return ValidationRule(
        field, "enum", f"{field} must be one of: {choices}", path,
        lambda v: v in allowed, kind,
    )


def _cidr(field: str, path: Tuple[Any, ...]):
    return ValidationRule(
        field, "cidr", f"{field} must be a valid IPv4 CIDR block (e.g. 10.10.10.0/24)",
        path, lambda v: isinstance(v, str) and is_ipv4_cidr(v), "any",
    )


def _key_lifetime(field: str, path: Tuple[Any, ...], catalog: Any):
    lo, hi = catalog.KEY_LIFETIME_MIN, catalog.KEY_LIFETIME_MAX
    return ValidationRule(
        field, "range", f"{field} must be between {lo} and {hi} seconds", path,
        lambda v: lo <= v <= hi, "int",
    )


def build_rules(catalog: Any, strict: bool = False) -> List[Any]:
    """Return the rule set in field declaration order.

    Args:
        catalog: Catalog module with enumerations and bounds
        strict: Add cross-field requiredness rules

    Returns:
        list: ValidationRule, UniqueRule (and RequiredWhenRule when strict) objects
    """
    max_len = catalog.PREFIX_MAX_LENGTH
    psk_len = catalog.PRESHARED_KEY_MIN_LENGTH
    max_subnets = catalog.MAX_WORKSPACE_SUBNETS
    rules: List[Any] = [
        ValidationRule(
            "prefix", "length",
            f"prefix must be between 1 and {max_len} characters long",
            ("prefix",), lambda v: 1 <= len(v) <= max_len,
        ),
        ValidationRule(
            "prefix", "charset",
            "prefix may only contain lowercase letters, digits and hyphens",
            ("prefix",), lambda v: bool(PREFIX_CHARSET.fullmatch(v)),
        ),
        _enum("region", ("region",), catalog.REGIONS),
        ValidationRule(
            "ssh_public_key", "not_empty", "ssh_public_key must not be empty",
            ("ssh_public_key",), lambda v: bool(v.strip()),
        ),
        ValidationRule(
            "tags", "type", "tags must be a list of strings",
            ("tags", "*"), lambda v: isinstance(v, str), "any",
        ),
        _cidr("vpc_address_prefix", ("vpc_address_prefix",)),
        _cidr("vpc_subnet_cidr", ("vpc_subnet_cidr",)),
        _enum("vpn_gateway_mode", ("vpn_gateway_mode",), catalog.VPN_GATEWAY_MODES),
        ValidationRule(
            "vpn_connections.name", "not_empty", "VPN connection name must not be empty",
            ("vpn_connections", "*", "name"), lambda v: bool(v.strip()),
        ),
        ValidationRule(
            "vpn_connections.peer_address", "ipv4",
            "peer_address must be a valid IPv4 address",
            ("vpn_connections", "*", "peer_address"), is_ipv4_address,
        ),
        ValidationRule(
            "vpn_connections.preshared_key", "min_length",
            f"preshared_key must be at least {psk_len} characters long",
            ("vpn_connections", "*", "preshared_key"), lambda v: len(v) >= psk_len,
        ),
        _cidr("vpn_connections.peer_cidrs", ("vpn_connections", "*", "peer_cidrs", "*")),
        _cidr("vpn_connections.local_cidrs", ("vpn_connections", "*", "local_cidrs", "*")),
        _enum(
            "ike_policy.authentication_algorithm",
            ("ike_policy", "authentication_algorithm"),
            catalog.IKE_AUTHENTICATION_ALGORITHMS,
        ),
        _enum(
            "ike_policy.encryption_algorithm",
            ("ike_policy", "encryption_algorithm"),
            catalog.IKE_ENCRYPTION_ALGORITHMS,
        ),
        _enum("ike_policy.dh_group", ("ike_policy", "dh_group"), catalog.IKE_DH_GROUPS, "int"),
        _enum(
            "ike_policy.ike_version", ("ike_policy", "ike_version"), catalog.IKE_VERSIONS, "int"
        ),
        _key_lifetime("ike_policy.key_lifetime", ("ike_policy", "key_lifetime"), catalog),
        _enum(
            "ipsec_policy.authentication_algorithm",
            ("ipsec_policy", "authentication_algorithm"),
            catalog.IPSEC_AUTHENTICATION_ALGORITHMS,
        ),
        _enum(
            "ipsec_policy.encryption_algorithm",
            ("ipsec_policy", "encryption_algorithm"),
            catalog.IPSEC_ENCRYPTION_ALGORITHMS,
        ),
        _enum("ipsec_policy.pfs", ("ipsec_policy", "pfs"), catalog.IPSEC_PFS_GROUPS),
        _key_lifetime("ipsec_policy.key_lifetime", ("ipsec_policy", "key_lifetime"), catalog),
        _enum("cos_storage_class", ("cos_storage_class",), catalog.STORAGE_CLASSES),
        _enum("powervs_zone", ("powervs_zone",), catalog.WORKSPACE_ZONES),
        ValidationRule(
            "powervs_subnets", "count",
            f"powervs_subnets must contain between 1 and {max_subnets} subnets",
            ("powervs_subnets",), lambda v: 1 <= len(v) <= max_subnets, "list",
        ),
        ValidationRule(
            "powervs_subnets.name", "not_empty", "subnet name must not be empty",
            ("powervs_subnets", "*", "name"), lambda v: bool(v.strip()),
        ),
        _cidr("powervs_subnets.cidr", ("powervs_subnets", "*", "cidr")),
        UniqueRule(
            "vpn_connections.name",
            "VPN connection names must stay unique once spaces and dots become hyphens",
            "vpn_connections", "name", hyphenate,
        ),
        UniqueRule(
            "powervs_subnets.name", "subnet names must be unique",
            "powervs_subnets", "name",
        ),
    ]
    if strict:
        rules.append(RequiredWhenRule("kms_key_crn", "enable_kms_encryption"))
    return rules


def _check_record(
    parts: Tuple[Any, ...], record: Any, shape: Dict[str, Tuple[str, bool]]
) -> List[ValidationFailure]:
    path = format_field_path(*parts)
    if not isinstance(record, dict):
        return [ValidationFailure(path, "type", f"{path} must be an object")]
    failures = []
    for key in record:
        if key not in shape:
            failures.append(
                ValidationFailure(
                    format_field_path(*parts, key), "unknown", f"Unknown attribute '{key}'"
                )
            )
    for key, (kind, required) in shape.items():
        key_path = format_field_path(*parts, key)
        if key not in record or record[key] is None:
            if required:
                failures.append(
                    ValidationFailure(key_path, "required", f"{key_path} is required")
                )
            continue
        if not _is_kind(record[key], kind):
            failures.append(
                ValidationFailure(
                    key_path, "type", f"{key_path} must be {TYPE_NAMES[kind]}"
                )
            )
    return failures


def check_structure(
    raw: Dict[str, Any], values: Dict[str, Any], fields: List[FieldSpec]
) -> List[ValidationFailure]:
    """Report unknown fields, missing required fields and type mismatches.

    Args:
        raw: Values exactly as supplied by the operator
        values: Same values with defaults applied
        fields: Field declarations

    Returns:
        list: Structural failures in field declaration order
    """
    failures = []
    declared = {spec.name for spec in fields}
    for spec in fields:
        value = values.get(spec.name)
        if spec.required and (spec.name not in raw or raw[spec.name] is None):
            failures.append(
                ValidationFailure(spec.name, "required", f"{spec.name} is required")
            )
            continue
        if value is None:
            if not spec.nullable:
                failures.append(
                    ValidationFailure(spec.name, "required", f"{spec.name} must not be null")
                )
            continue
        if not _is_kind(value, spec.kind):
            failures.append(
                ValidationFailure(
                    spec.name, "type", f"{spec.name} must be {TYPE_NAMES[spec.kind]}"
                )
            )
            continue
        shape = RECORD_SHAPES.get(spec.name)
        if shape and spec.kind == "list":
            for i, item in enumerate(value):
                failures.extend(_check_record((spec.name, i), item, shape))
        elif shape:
            failures.extend(_check_record((spec.name,), value, shape))
    for name in raw:
        if name not in declared:
            failures.append(
                ValidationFailure(name, "unknown", f"Unknown input field '{name}'")
            )
    return failures


def collect_failures(
    raw: Dict[str, Any], strict: bool = False, catalog: Optional[Any] = None
) -> List[ValidationFailure]:
    """Run every structural check and rule; return all failures without raising."""
    catalog = catalog or config_loader.load_catalog()
    fields = input_fields(catalog)
    values = apply_defaults(raw, fields)
    failures = check_structure(raw, values, fields)
    for rule in build_rules(catalog, strict):
        failures.extend(rule.check(values))
    return failures


def validate_inputs(
    raw: Dict[str, Any], strict: bool = False, catalog: Optional[Any] = None
) -> InputSet:
    """
    Validate a raw input set and freeze it into an InputSet.

    Validation is all-or-nothing: every rule is evaluated, and if any of
    them fails a single ValidationError carrying the full ordered failure
    list is raised before any resource node is considered.

    Args:
        raw: Merged parameters from varfiles, environment and CLI overrides
        strict: Enforce cross-field requiredness (kms_key_crn when
            enable_kms_encryption is true)
        catalog: Catalog module (defaults to the 'ibm' catalog)

    Returns:
        InputSet: Fully typed, defaulted and immutable input set

    Raises:
        ValidationError: If one or more rules failed
    """
    catalog = catalog or config_loader.load_catalog()
    failures = collect_failures(raw, strict, catalog)
    if failures:
        logger.debug(f"Validation produced {len(failures)} failures")
        raise ValidationError(failures)

    values = apply_defaults(raw, input_fields(catalog))
    if values["enable_kms_encryption"] and not values.get("kms_key_crn"):
        logger.warning(
            "enable_kms_encryption is true but kms_key_crn is not set; "
            "the storage module will fall back to provider-managed keys. "
            "Use strict mode to reject this combination."
        )
    return build_inputset(values)
