"""Typed input set for a landing zone deployment.

The raw parameters supplied by an operator (varfiles, environment, CLI
overrides) are checked by ``stackcore.validator`` and then frozen into an
``InputSet``. Nested records (subnets, VPN connections, IKE and IPsec
policies) get their own dataclasses. Collections are stored as tuples so
the whole set stays immutable once built.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from stackcore.sensitive import Sensitive


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of one top-level input field.

    Args:
        name: Parameter name as written in a varfile
        kind: Expected type ('str', 'bool', 'int', 'list', 'dict')
        default: Default value; ignored when required is True
        required: Field must be supplied by the operator
        nullable: ``None`` is an acceptable value
        sensitive: Value must never be echoed
    """

    name: str
    kind: str
    default: Any = None
    required: bool = False
    nullable: bool = False
    sensitive: bool = False


@dataclass(frozen=True)
class SubnetSpec:
    name: str
    cidr: str
    dns: Tuple[str, ...] = ("127.0.0.1",)


@dataclass(frozen=True)
class VpnConnectionSpec:
    name: str
    peer_address: str
    preshared_key: Sensitive
    peer_cidrs: Tuple[str, ...] = ()
    local_cidrs: Tuple[str, ...] = ()


@dataclass(frozen=True)
class IkePolicy:
    authentication_algorithm: str
    encryption_algorithm: str
    dh_group: int
    ike_version: int
    key_lifetime: int


@dataclass(frozen=True)
class IpsecPolicy:
    authentication_algorithm: str
    encryption_algorithm: str
    pfs: str
    key_lifetime: int


@dataclass(frozen=True)
class InputSet:
    """Validated, defaulted deployment parameters."""

    prefix: str
    region: str
    ssh_public_key: Sensitive
    resource_group_id: Optional[str] = None
    tags: Tuple[str, ...] = ()
    vpc_address_prefix: str = "10.10.0.0/18"
    vpc_subnet_cidr: str = "10.10.10.0/24"
    enable_flow_logs: bool = True
    enable_vpn_gateway: bool = False
    vpn_gateway_mode: str = "route"
    vpn_connections: Tuple[VpnConnectionSpec, ...] = ()
    ike_policy: Optional[IkePolicy] = None
    ipsec_policy: Optional[IpsecPolicy] = None
    cos_storage_class: str = "standard"
    enable_kms_encryption: bool = False
    kms_key_crn: Optional[str] = None
    enable_transit_gateway: bool = True
    transit_gateway_global_routing: bool = False
    enable_powervs_workspace: bool = True
    powervs_zone: str = "dal10"
    powervs_subnets: Tuple[SubnetSpec, ...] = field(default_factory=tuple)


def input_fields(catalog: Any) -> List[FieldSpec]:
    """Return the top-level field declarations in validation order."""
    return [
        FieldSpec("prefix", "str", required=True),
        FieldSpec("region", "str", required=True),
        FieldSpec("ssh_public_key", "str", required=True, sensitive=True),
        FieldSpec("resource_group_id", "str", nullable=True),
        FieldSpec("tags", "list", default=[]),
        FieldSpec("vpc_address_prefix", "str", default="10.10.0.0/18"),
        FieldSpec("vpc_subnet_cidr", "str", default="10.10.10.0/24"),
        FieldSpec("enable_flow_logs", "bool", default=True),
        FieldSpec("enable_vpn_gateway", "bool", default=False),
        FieldSpec("vpn_gateway_mode", "str", default="route"),
        FieldSpec("vpn_connections", "list", default=[], sensitive=True),
        FieldSpec("ike_policy", "dict", default=catalog.DEFAULT_IKE_POLICY),
        FieldSpec("ipsec_policy", "dict", default=catalog.DEFAULT_IPSEC_POLICY),
        FieldSpec("cos_storage_class", "str", default="standard"),
        FieldSpec("enable_kms_encryption", "bool", default=False),
        FieldSpec("kms_key_crn", "str", nullable=True),
        FieldSpec("enable_transit_gateway", "bool", default=True),
        FieldSpec("transit_gateway_global_routing", "bool", default=False),
        FieldSpec("enable_powervs_workspace", "bool", default=True),
        FieldSpec("powervs_zone", "str", default="dal10"),
        FieldSpec(
            "powervs_subnets", "list", default=catalog.DEFAULT_WORKSPACE_SUBNETS
        ),
    ]


def apply_defaults(raw: Dict[str, Any], fields: List[FieldSpec]) -> Dict[str, Any]:
    """Fill absent optional fields with deep copies of their defaults.

    Nested policy records are merged key by key so a varfile may override
    a single attribute (e.g. only ``ike_version``).
    """
    merged = dict(raw)
    for spec in fields:
        if spec.required:
            continue
        if spec.name not in merged:
            merged[spec.name] = copy.deepcopy(spec.default)
        elif spec.kind == "dict" and isinstance(merged[spec.name], dict):
            record = copy.deepcopy(spec.default or {})
            record.update(merged[spec.name])
            merged[spec.name] = record
    return merged


def build_inputset(values: Dict[str, Any]) -> InputSet:
    """Freeze a validated, defaulted raw dict into an InputSet."""
    connections = tuple(
        VpnConnectionSpec(
            name=conn["name"],
            peer_address=conn["peer_address"],
            preshared_key=Sensitive(conn["preshared_key"]),
            peer_cidrs=tuple(conn.get("peer_cidrs") or ()),
            local_cidrs=tuple(conn.get("local_cidrs") or ()),
        )
        for conn in values["vpn_connections"]
    )
    subnets = tuple(
        SubnetSpec(
            name=subnet["name"],
            cidr=subnet["cidr"],
            dns=tuple(subnet.get("dns") or ("127.0.0.1",)),
        )
        for subnet in values["powervs_subnets"]
    )
    return InputSet(
        prefix=values["prefix"],
        region=values["region"],
        ssh_public_key=Sensitive(values["ssh_public_key"]),
        resource_group_id=values.get("resource_group_id"),
        tags=tuple(values["tags"]),
        vpc_address_prefix=values["vpc_address_prefix"],
        vpc_subnet_cidr=values["vpc_subnet_cidr"],
        enable_flow_logs=values["enable_flow_logs"],
        enable_vpn_gateway=values["enable_vpn_gateway"],
        vpn_gateway_mode=values["vpn_gateway_mode"],
        vpn_connections=connections,
        ike_policy=IkePolicy(**values["ike_policy"]),
        ipsec_policy=IpsecPolicy(**values["ipsec_policy"]),
        cos_storage_class=values["cos_storage_class"],
        enable_kms_encryption=values["enable_kms_encryption"],
        kms_key_crn=values.get("kms_key_crn"),
        enable_transit_gateway=values["enable_transit_gateway"],
        transit_gateway_global_routing=values["transit_gateway_global_routing"],
        enable_powervs_workspace=values["enable_powervs_workspace"],
        powervs_zone=values["powervs_zone"],
        powervs_subnets=subnets,
    )
