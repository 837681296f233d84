"""Output projection for ZoneStack.

Maps materialized node attributes onto the fixed external output
contract. The key set never changes; only values become ``None`` when the
source node was disabled or never materialized.
"""

import logging
from typing import Any, Dict, List, Optional

from stackcore.models import OutputBinding, ResourceGraph

logger = logging.getLogger(__name__)

OUTPUT_BINDINGS: List[OutputBinding] = [
    OutputBinding("vpc_id", "network", ("vpc_id",), description="VPC ID"),
    OutputBinding("vpc_crn", "network", ("vpc_crn",), description="VPC CRN"),
    OutputBinding("vpc_subnet_id", "network", ("subnet_id",), description="VPC subnet ID"),
    OutputBinding(
        "vpn_gateway_id", "network", ("vpn_gateway_id",), description="VPN gateway ID"
    ),
    OutputBinding(
        "vpn_gateway_public_ips",
        "network",
        ("vpn_gateway_public_ips",),
        description="Public IP addresses of the VPN gateway members",
    ),
    OutputBinding(
        "vpn_connection_ids",
        "vpn",
        ("vpn_connection_ids",),
        description="IDs of the site-to-site VPN connections",
    ),
    OutputBinding(
        "cos_instance_id", "storage", ("cos_instance_id",), description="COS instance ID"
    ),
    OutputBinding(
        "cos_instance_crn", "storage", ("cos_instance_crn",), description="COS instance CRN"
    ),
    OutputBinding(
        "cos_bucket_name", "storage", ("bucket_name",), description="Flow logs bucket name"
    ),
    OutputBinding(
        "transit_gateway_id",
        "transit_gateway",
        ("transit_gateway_id",),
        description="Transit gateway ID",
    ),
    OutputBinding(
        "transit_gateway_crn",
        "transit_gateway",
        ("transit_gateway_crn",),
        description="Transit gateway CRN",
    ),
    OutputBinding(
        "powervs_workspace_id",
        "workspace",
        ("workspace_id",),
        description="PowerVS workspace ID",
    ),
    OutputBinding(
        "powervs_workspace_guid",
        "workspace",
        ("workspace_guid",),
        description="PowerVS workspace GUID",
    ),
    OutputBinding(
        "powervs_workspace_crn",
        "workspace",
        ("workspace_crn",),
        description="PowerVS workspace CRN",
    ),
    OutputBinding(
        "powervs_ssh_key_name",
        "workspace",
        ("ssh_key_name",),
        description="Name of the SSH key imported into the workspace",
    ),
    OutputBinding(
        "powervs_subnet_ids",
        "workspace",
        ("subnet_1_id", "subnet_2_id", "subnet_3_id"),
        policy="compact_list",
        description="IDs of the workspace private subnets",
    ),
    OutputBinding(
        "deployment_summary",
        None,
        policy="derived",
        description="Key enablement flags of this deployment",
    ),
]


def output_names() -> List[str]:
    return [binding.name for binding in OUTPUT_BINDINGS]


def resolve_binding(
    binding: OutputBinding,
    graph: ResourceGraph,
    materialized: Dict[str, Dict[str, Any]],
) -> Any:
    """Evaluate one binding independently of all others.

    Args:
        binding: Output binding to evaluate
        graph: Assembled resource graph
        materialized: Node ID -> attribute values reported after provisioning

    Returns:
        Binding value; ``None`` when its source node is absent or was not
        materialized
    """
    if binding.policy == "derived":
        return dict(graph.summary)

    if binding.node not in graph or binding.node not in materialized:
        return None
    attributes = materialized[binding.node] or {}

    if binding.policy == "compact_list":
        return [
            attributes[attr]
            for attr in binding.attributes
            if attributes.get(attr) is not None
        ]
    if binding.policy == "single":
        return attributes.get(binding.attributes[0])
    raise ValueError(f"Unknown output policy '{binding.policy}' for {binding.name}")


def project_outputs(
    graph: ResourceGraph,
    materialized: Optional[Dict[str, Dict[str, Any]]] = None,
    bindings: Optional[List[OutputBinding]] = None,
) -> Dict[str, Any]:
    """Produce the flat external output map.

    Args:
        graph: Assembled resource graph
        materialized: Per-node attributes from the provisioning engine
        bindings: Output bindings (defaults to OUTPUT_BINDINGS)

    Returns:
        dict: Every binding name mapped to its value, in binding order
    """
    materialized = materialized or {}
    bindings = bindings if bindings is not None else OUTPUT_BINDINGS
    outputs = {}
    for binding in bindings:
        outputs[binding.name] = resolve_binding(binding, graph, materialized)
    missing = [b.name for b in bindings if outputs[b.name] is None]
    if missing:
        logger.debug(f"Outputs resolved to null: {', '.join(missing)}")
    return outputs
