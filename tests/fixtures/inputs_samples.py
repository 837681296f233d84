"""Fixture factories for raw ZoneStack input sets.

Each factory returns a fresh dict shaped like a parsed varfile so tests
can mutate it freely.
"""

from typing import Any, Dict, List

SSH_KEY = "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQDzonestack operator@example"
PRESHARED_KEY = "0123456789abcdef0123456789abcdef"  # exactly 32 characters


def minimal_inputs() -> Dict[str, Any]:
    """Only the required fields; everything else falls back to defaults."""
    return {
        "prefix": "lz",
        "region": "us-south",
        "ssh_public_key": SSH_KEY,
    }


def vpn_connection(name: str = "onprem dc1", **overrides: Any) -> Dict[str, Any]:
    connection = {
        "name": name,
        "peer_address": "203.0.113.10",
        "preshared_key": PRESHARED_KEY,
        "peer_cidrs": ["192.168.0.0/24"],
    }
    connection.update(overrides)
    return connection


def vpn_inputs(mode: str = "route", connections: int = 1) -> Dict[str, Any]:
    """Gateway enabled with ``connections`` site-to-site connections."""
    inputs = minimal_inputs()
    inputs["enable_vpn_gateway"] = True
    inputs["vpn_gateway_mode"] = mode
    inputs["vpn_connections"] = [
        vpn_connection(f"site.{i + 1}") for i in range(connections)
    ]
    return inputs


def workspace_subnets(count: int) -> List[Dict[str, Any]]:
    return [
        {"name": f"sub{i + 1}", "cidr": f"10.51.{i}.0/24", "dns": ["127.0.0.1"]}
        for i in range(count)
    ]


def full_inputs() -> Dict[str, Any]:
    """Every optional node enabled."""
    inputs = vpn_inputs()
    inputs.update(
        {
            "resource_group_id": "rg-1234",
            "tags": ["env:test", "owner:platform"],
            "enable_kms_encryption": True,
            "kms_key_crn": "crn:v1:bluemix:public:kms:us-south:a/1::key:abc",
            "powervs_subnets": workspace_subnets(2),
        }
    )
    return inputs
