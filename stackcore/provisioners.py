"""
Provisioner capability interface for ZoneStack.

A provisioner accepts one ResourceNode with its references already
resolved and returns the attributes it materialized, or raises
ProvisioningError. The graph builder and engine never know which concrete
backend is behind a node kind, so swapping the module that provisions a
kind means registering a different Provisioner for it.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import stackcore.config_loader as config_loader
from stackcore.exceptions import ConfigurationError, ProvisioningError
from stackcore.models import ResourceNode

logger = logging.getLogger(__name__)


class Provisioner(ABC):
    """Materializes nodes of one kind."""

    @abstractmethod
    def provision(self, node: ResourceNode, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Materialize ``node``.

        Args:
            node: Node being provisioned (for ID, kind, name and declared outputs)
            inputs: Node inputs with every Ref replaced by its upstream value

        Returns:
            dict: Attribute name -> materialized value

        Raises:
            ProvisioningError: If the node cannot be materialized
        """


class ProvisionerRegistry:
    """
    Maps node kinds to provisioners.

    Instances are created per invocation; nothing is shared between runs.
    """

    def __init__(self, provisioners: Optional[Dict[str, Provisioner]] = None):
        self._provisioners: Dict[str, Provisioner] = dict(provisioners or {})

    def register(self, kind: str, provisioner: Provisioner, replace: bool = False) -> None:
        """
        Register a provisioner for a node kind.

        Raises:
            ValueError: If the kind already has a provisioner and replace is False
        """
        if kind in self._provisioners and not replace:
            raise ValueError(f"Provisioner for kind '{kind}' already registered")
        self._provisioners[kind] = provisioner

    def get(self, kind: str) -> Provisioner:
        provisioner = self._provisioners.get(kind)
        if provisioner is None:
            raise ConfigurationError(f"No provisioner registered for kind '{kind}'")
        return provisioner

    def kinds(self) -> List[str]:
        return sorted(self._provisioners)


def _digest(*parts: str, length: int = 8) -> str:
    text = ":".join(parts)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:length]


def _crn(service: str, region: str, resource_type: str, resource_id: str) -> str:
    return f"crn:v1:bluemix:public:{service}:{region}:a/simulated::{resource_type}:{resource_id}"


class SimulatedProvisioner(Provisioner):
    """
    Offline backend that fabricates deterministic identifiers.

    Identifiers are derived from node kind and display name, so repeated
    runs over the same graph materialize the same attributes. Used by the
    ``apply`` command and in tests.
    """

    def provision(self, node: ResourceNode, inputs: Dict[str, Any]) -> Dict[str, Any]:
        handler = getattr(self, f"_provision_{node.kind}", None)
        if handler is None:
            raise ProvisioningError(
                f"Simulated backend cannot provision kind '{node.kind}'", node.id
            )
        attributes = handler(node, inputs)
        undeclared = sorted(set(attributes) - set(node.outputs))
        if undeclared:
            raise ProvisioningError(
                "Backend reported undeclared attributes",
                node.id,
                context={"attributes": ",".join(undeclared)},
            )
        logger.debug(f"Simulated provisioning of {node.id} ({node.name})")
        return attributes

    def _provision_network(self, node, inputs):
        vpc_id = f"r006-{_digest('vpc', node.name)}"
        gateway = inputs["vpn_gateway"]
        if gateway["enabled"]:
            seed = int(_digest("vpngw", node.name, length=4), 16)
            public_ips = [f"198.51.100.{seed % 120 + 1}", f"198.51.100.{seed % 120 + 121}"]
            gateway_id = f"r006-{_digest('vpngw', node.name)}"
        else:
            public_ips = None
            gateway_id = None
        return {
            "vpc_id": vpc_id,
            "vpc_crn": _crn("is", inputs["region"], "vpc", vpc_id),
            "subnet_id": f"0717-{_digest('subnet', node.name)}",
            "vpn_gateway_id": gateway_id,
            "vpn_gateway_public_ips": public_ips,
        }

    def _provision_vpn(self, node, inputs):
        if not inputs.get("vpn_gateway_id"):
            raise ProvisioningError("VPN gateway ID is not available", node.id)
        return {
            "vpn_connection_ids": [
                f"0717-{_digest('vpnconn', conn['name'])}" for conn in inputs["connections"]
            ]
        }

    def _provision_storage(self, node, inputs):
        guid = _digest("cos", node.name, length=32)
        return {
            "cos_instance_id": _crn("cloud-object-storage", "global", "", guid),
            "cos_instance_crn": _crn("cloud-object-storage", "global", "", guid),
            "bucket_name": inputs["bucket_name"],
            "bucket_crn": _crn(
                "cloud-object-storage", "global", "bucket", inputs["bucket_name"]
            ),
        }

    def _provision_transit_gateway(self, node, inputs):
        for connection in inputs["connections"]:
            if not connection.get("network_id"):
                raise ProvisioningError("Transit gateway connection has no network", node.id)
        tgw_id = _digest("tgw", node.name, length=32)
        return {
            "transit_gateway_id": tgw_id,
            "transit_gateway_crn": _crn(
                "transit", inputs["location"], "gateway", tgw_id
            ),
        }

    def _provision_workspace(self, node, inputs):
        connection = inputs["transit_gateway_connection"]
        if connection["enabled"] and not connection.get("transit_gateway_id"):
            raise ProvisioningError(
                "Transit gateway connection enabled without a gateway ID", node.id
            )
        guid = _digest("workspace", node.name, length=32)
        attributes = {
            "workspace_id": guid,
            "workspace_guid": guid,
            "workspace_crn": _crn("power-iaas", inputs["zone"], "", guid),
            "ssh_key_name": inputs["ssh_key_name"],
        }
        for slot in (1, 2, 3):
            subnet = inputs.get(f"subnet_{slot}")
            if subnet:
                attributes[f"subnet_{slot}_id"] = _digest("pisubnet", subnet["name"], length=36)
        return attributes


def simulated_registry(catalog: Optional[Any] = None) -> ProvisionerRegistry:
    """Registry with the simulated backend registered for every catalog kind."""
    catalog = catalog or config_loader.load_catalog()
    backend = SimulatedProvisioner()
    registry = ProvisionerRegistry()
    for kind in catalog.MODULE_SOURCES:
        registry.register(kind, backend)
    return registry
