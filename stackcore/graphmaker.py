"""Graph maker module for ZoneStack.

This module turns a validated InputSet into the conditional resource graph
handed to the provisioning engine. It decides which optional nodes exist,
threads references between them, derives display names and orders the
result by dependency rather than by declaration.
"""

import json
import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional

import stackcore.config_loader as config_loader
from stackcore.exceptions import StructuralError
from stackcore.models import Edge, Ref, ResourceGraph, ResourceNode
from stackcore.schema import InputSet
from stackcore.sensitive import Sensitive, mask
from stackcore.utils.graph_utils import find_circular_refs, topological_order
from stackcore.utils.string_utils import derive_name, hyphenate

logger = logging.getLogger(__name__)

# Node IDs in declaration order; provisioning order comes from the edges
DECLARATION_ORDER = ["network", "vpn", "storage", "transit_gateway", "workspace"]

# Attributes that only exist while a sub-resource of the target node is enabled
SUBRESOURCE_ATTRIBUTES = {
    ("network", "vpn_gateway_id"): "vpn_gateway",
    ("network", "vpn_gateway_public_ips"): "vpn_gateway",
}


def disabled_connection() -> Dict[str, Any]:
    """Explicit marker for a transit gateway connection that is switched off."""
    return {"enabled": False, "transit_gateway_id": None}


def _build_network(inputs: InputSet, catalog: Any, built: Dict[str, ResourceNode]):
    gateway_enabled = inputs.enable_vpn_gateway
    if inputs.enable_flow_logs:
        flow_logs = {
            "enabled": True,
            "cos_bucket_name": Ref("storage", "bucket_name"),
            "cos_instance_crn": Ref("storage", "cos_instance_crn"),
        }
    else:
        flow_logs = {"enabled": False, "cos_bucket_name": None, "cos_instance_crn": None}
    return ResourceNode(
        id="network",
        kind="network",
        name=derive_name(inputs.prefix, catalog.NAME_SUFFIXES["network"]),
        inputs={
            "region": inputs.region,
            "resource_group_id": inputs.resource_group_id,
            "tags": list(inputs.tags),
            "address_prefix": inputs.vpc_address_prefix,
            "subnet_cidr": inputs.vpc_subnet_cidr,
            "vpn_gateway": {
                "enabled": gateway_enabled,
                "mode": inputs.vpn_gateway_mode if gateway_enabled else None,
            },
            "flow_logs": flow_logs,
        },
        outputs=tuple(catalog.NODE_OUTPUTS["network"]),
    )


def _vpn_connection(
    inputs: InputSet, conn: Any, mode: str
) -> Dict[str, Any]:
    name = derive_name(inputs.prefix, hyphenate(conn.name))
    identities = 2 if mode == "route" else 1
    descriptor: Dict[str, Any] = {
        "name": name,
        "peer_address": conn.peer_address,
        "preshared_key": conn.preshared_key,
        "local_ike_identities": [
            {
                "type": "ipv4_address",
                "value": Ref("network", "vpn_gateway_public_ips", i),
            }
            for i in range(identities)
        ],
    }
    if mode == "policy":
        descriptor["local_cidrs"] = list(conn.local_cidrs) or [inputs.vpc_subnet_cidr]
        descriptor["peer_cidrs"] = list(conn.peer_cidrs)
    else:
        descriptor["routes"] = [
            {"name": f"{name}-route-{i + 1}", "destination": cidr}
            for i, cidr in enumerate(conn.peer_cidrs)
        ]
    return descriptor


def _build_vpn(inputs: InputSet, catalog: Any, built: Dict[str, ResourceNode]):
    # Enablement and mode come from the network node's gateway, never from raw flags
    gateway = built["network"].inputs["vpn_gateway"]
    if not gateway["enabled"] or not inputs.vpn_connections:
        return None
    mode = gateway["mode"]
    return ResourceNode(
        id="vpn",
        kind="vpn",
        name=derive_name(inputs.prefix, catalog.NAME_SUFFIXES["vpn"]),
        inputs={
            "vpn_gateway_id": Ref("network", "vpn_gateway_id"),
            "vpc_id": Ref("network", "vpc_id"),
            "mode": mode,
            "ike_policy": {
                "name": derive_name(inputs.prefix, "ike-policy"),
                **asdict(inputs.ike_policy),
            },
            "ipsec_policy": {
                "name": derive_name(inputs.prefix, "ipsec-policy"),
                **asdict(inputs.ipsec_policy),
            },
            "connections": [
                _vpn_connection(inputs, conn, mode) for conn in inputs.vpn_connections
            ],
        },
        outputs=tuple(catalog.NODE_OUTPUTS["vpn"]),
    )


def _build_storage(inputs: InputSet, catalog: Any, built: Dict[str, ResourceNode]):
    return ResourceNode(
        id="storage",
        kind="storage",
        name=derive_name(inputs.prefix, catalog.NAME_SUFFIXES["storage"]),
        inputs={
            "region": inputs.region,
            "resource_group_id": inputs.resource_group_id,
            "tags": list(inputs.tags),
            "bucket_name": derive_name(
                inputs.prefix, catalog.NAME_SUFFIXES["storage_bucket"]
            ),
            "storage_class": inputs.cos_storage_class,
            "kms_encryption_enabled": inputs.enable_kms_encryption,
            "kms_key_crn": inputs.kms_key_crn,
        },
        outputs=tuple(catalog.NODE_OUTPUTS["storage"]),
    )


def _build_transit_gateway(
    inputs: InputSet, catalog: Any, built: Dict[str, ResourceNode]
):
    if not inputs.enable_transit_gateway:
        return None
    return ResourceNode(
        id="transit_gateway",
        kind="transit_gateway",
        name=derive_name(inputs.prefix, catalog.NAME_SUFFIXES["transit_gateway"]),
        inputs={
            "location": inputs.region,
            "resource_group_id": inputs.resource_group_id,
            "tags": list(inputs.tags),
            "global_routing": inputs.transit_gateway_global_routing,
            "connections": [
                {"network_type": "vpc", "network_id": Ref("network", "vpc_crn")}
            ],
        },
        outputs=tuple(catalog.NODE_OUTPUTS["transit_gateway"]),
    )


def _build_workspace(inputs: InputSet, catalog: Any, built: Dict[str, ResourceNode]):
    if not inputs.enable_powervs_workspace:
        return None
    node_inputs: Dict[str, Any] = {
        "zone": inputs.powervs_zone,
        "resource_group_id": inputs.resource_group_id,
        "tags": list(inputs.tags),
        "ssh_key_name": derive_name(
            inputs.prefix, catalog.NAME_SUFFIXES["workspace_ssh_key"]
        ),
        "ssh_public_key": inputs.ssh_public_key,
    }
    subnets = inputs.powervs_subnets[: catalog.MAX_WORKSPACE_SUBNETS]
    for slot, subnet in enumerate(subnets, start=1):
        node_inputs[f"subnet_{slot}"] = {
            "name": derive_name(inputs.prefix, subnet.name),
            "cidr": subnet.cidr,
            "dns": list(subnet.dns),
        }
    if "transit_gateway" in built:
        node_inputs["transit_gateway_connection"] = {
            "enabled": True,
            "transit_gateway_id": Ref("transit_gateway", "transit_gateway_id"),
        }
    else:
        node_inputs["transit_gateway_connection"] = disabled_connection()
    return ResourceNode(
        id="workspace",
        kind="workspace",
        name=derive_name(inputs.prefix, catalog.NAME_SUFFIXES["workspace"]),
        inputs=node_inputs,
        outputs=tuple(catalog.NODE_OUTPUTS["workspace"]),
    )


NODE_BUILDERS: Dict[str, Callable[..., Optional[ResourceNode]]] = {
    "network": _build_network,
    "vpn": _build_vpn,
    "storage": _build_storage,
    "transit_gateway": _build_transit_gateway,
    "workspace": _build_workspace,
}


def collect_edges(nodes: Dict[str, ResourceNode]) -> List[Edge]:
    """Derive one Edge per distinct (source, target, attribute) reference."""
    edges: List[Edge] = []
    for node in nodes.values():
        for ref in node.refs():
            edge = Edge(node.id, ref.node, ref.attribute)
            if edge not in edges:
                edges.append(edge)
    return edges


def check_structure(nodes: Dict[str, ResourceNode]) -> List[str]:
    """Verify enablement and reference invariants over a set of present nodes.

    Args:
        nodes: Present nodes keyed by ID

    Returns:
        list: Provisioning order (topological, ties by declaration order)

    Raises:
        StructuralError: On a dangling reference, an undeclared attribute, a
            reference to a disabled sub-resource, or a dependency cycle
    """
    for node in nodes.values():
        for ref in node.refs():
            target = nodes.get(ref.node)
            if target is None:
                raise StructuralError(
                    f"Node '{node.id}' references absent node '{ref.node}'",
                    context={"reference": ref.describe()},
                )
            if ref.attribute not in target.outputs:
                raise StructuralError(
                    f"Node '{ref.node}' does not declare attribute '{ref.attribute}'",
                    context={"source": node.id},
                )
            subresource = SUBRESOURCE_ATTRIBUTES.get((ref.node, ref.attribute))
            if subresource and not target.inputs.get(subresource, {}).get("enabled"):
                raise StructuralError(
                    f"Node '{node.id}' depends on disabled sub-resource "
                    f"'{ref.node}.{subresource}'",
                    context={"reference": ref.describe()},
                )

    graphdict = {node_id: node.dependencies() for node_id, node in nodes.items()}
    cycles = find_circular_refs(graphdict)
    if cycles:
        raise StructuralError(
            "Resource graph contains a dependency cycle",
            context={"cycle": " -> ".join(cycles[0])},
        )
    return topological_order(graphdict, DECLARATION_ORDER)


def deployment_summary(inputs: InputSet, nodes: Dict[str, ResourceNode]) -> Dict[str, Any]:
    return {
        "prefix": inputs.prefix,
        "region": inputs.region,
        "powervs_zone": inputs.powervs_zone if "workspace" in nodes else None,
        "flow_logs_enabled": inputs.enable_flow_logs,
        "kms_encryption_enabled": inputs.enable_kms_encryption,
        "vpn_gateway_enabled": inputs.enable_vpn_gateway,
        "vpn_enabled": "vpn" in nodes,
        "vpn_connection_count": len(inputs.vpn_connections) if "vpn" in nodes else 0,
        "transit_gateway_enabled": "transit_gateway" in nodes,
        "powervs_workspace_enabled": "workspace" in nodes,
    }


def build_graph(inputs: InputSet, catalog: Optional[Any] = None) -> ResourceGraph:
    """Assemble the conditional resource graph for a validated InputSet.

    Builders run in declaration order and may consult nodes built before
    them, which is how dependent enablement (VPN on the network gateway,
    workspace connection on the transit gateway) is derived rather than
    accepted as independent input. The final node order is topological.

    Args:
        inputs: Validated input set
        catalog: Catalog module (defaults to the 'ibm' catalog)

    Returns:
        ResourceGraph with present nodes, edges and deployment summary

    Raises:
        TypeError: If ``inputs`` is not an InputSet
        StructuralError: If an invariant is broken
    """
    if not isinstance(inputs, InputSet):
        raise TypeError("build_graph requires a validated InputSet")
    catalog = catalog or config_loader.load_catalog()

    built: Dict[str, ResourceNode] = {}
    for node_id in DECLARATION_ORDER:
        node = NODE_BUILDERS[node_id](inputs, catalog, built)
        if node is None:
            logger.debug(f"Node '{node_id}' disabled")
            continue
        built[node_id] = node

    order = check_structure(built)
    nodes = {node_id: built[node_id] for node_id in order}
    graph = ResourceGraph(
        nodes=nodes,
        edges=collect_edges(nodes),
        order=order,
        summary=deployment_summary(inputs, nodes),
    )
    logger.info(f"Built resource graph with {len(order)} nodes: {', '.join(order)}")
    return graph


def _plain(value: Any) -> Any:
    if isinstance(value, Ref):
        return {"ref": value.describe()}
    if isinstance(value, Sensitive):
        return mask(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def export_graphdata(graph: ResourceGraph) -> Dict[str, Any]:
    """Return a JSON-friendly view of the graph with sensitive values masked."""
    return {
        "order": list(graph.order),
        "graphdict": graph.graphdict,
        "nodes": {
            node.id: {
                "kind": node.kind,
                "name": node.name,
                "inputs": _plain(node.inputs),
                "outputs": list(node.outputs),
            }
            for node in graph
        },
        "edges": [
            {"source": e.source, "target": e.target, "attribute": e.attribute}
            for e in graph.edges
        ],
        "summary": dict(graph.summary),
    }


def graphdata_json(graph: ResourceGraph) -> str:
    """Canonical JSON text of ``export_graphdata``; identical for identical graphs."""
    return json.dumps(export_graphdata(graph), indent=4, sort_keys=True)
