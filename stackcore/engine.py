"""Apply engine for ZoneStack.

Walks a ResourceGraph in provisioning order and hands each node to the
provisioner registered for its kind. Failures are scoped to the failing
node: its dependants are skipped, independent nodes carry on, and nothing
already materialized is rolled back.
"""

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import click

from stackcore.exceptions import ProvisioningError
from stackcore.models import Ref, ResourceGraph
from stackcore.provisioners import ProvisionerRegistry
from stackcore.sensitive import reveal
from stackcore.state import StateStore
from stackcore.utils.graph_utils import dependants_of

logger = logging.getLogger(__name__)

CREATED = "created"
UNCHANGED = "unchanged"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class ApplyResult:
    """Outcome of one apply pass."""

    materialized: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    status: Dict[str, str] = field(default_factory=dict)
    errors: Dict[str, ProvisioningError] = field(default_factory=dict)
    orphaned: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors and SKIPPED not in self.status.values()


def resolve_value(value: Any, materialized: Dict[str, Dict[str, Any]]) -> Any:
    """Replace every Ref in ``value`` with the upstream materialized attribute."""
    if isinstance(value, Ref):
        attribute = materialized[value.node].get(value.attribute)
        if value.index is not None:
            if not isinstance(attribute, list) or value.index >= len(attribute):
                return None
            return attribute[value.index]
        return attribute
    if isinstance(value, dict):
        return {k: resolve_value(v, materialized) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_value(item, materialized) for item in value]
    return value


def fingerprint(kind: str, name: str, inputs: Dict[str, Any], key: str) -> str:
    """Keyed hash (HMAC-SHA256) of a node's resolved inputs.

    Resolved inputs include revealed secrets, so the digest is keyed with
    the state store's own key rather than being a plain hash.
    """
    payload = json.dumps(
        {"kind": kind, "name": name, "inputs": reveal(inputs)}, sort_keys=True, default=str
    )
    return hmac.new(
        key.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def apply_graph(
    graph: ResourceGraph,
    registry: ProvisionerRegistry,
    store: Optional[StateStore] = None,
) -> ApplyResult:
    """
    Provision every node of ``graph`` in order.

    Args:
        graph: Assembled resource graph
        registry: Provisioner per node kind
        store: Record of earlier applies; unchanged nodes are not re-provisioned

    Returns:
        ApplyResult with per-node status, materialized attributes and errors

    Raises:
        ConfigurationError: If a node kind has no registered provisioner
    """
    store = store or StateStore()
    result = ApplyResult()

    # Fail before touching anything if a kind has no backend
    for node in graph:
        registry.get(node.kind)

    graphdict = graph.graphdict
    # Dependant node ID -> the failed node it waits on
    blocked: Dict[str, str] = {}
    for node in graph:
        if node.id in blocked:
            result.status[node.id] = SKIPPED
            click.echo(
                click.style(
                    f"  Skipping {node.id}: waiting on failed dependency {blocked[node.id]}",
                    fg="yellow",
                )
            )
            continue

        inputs = resolve_value(node.inputs, result.materialized)
        digest = fingerprint(node.kind, node.name, inputs, store.fingerprint_key)
        previous = store.get(node.id)
        if previous and previous["fingerprint"] == digest:
            result.materialized[node.id] = dict(previous["outputs"])
            result.status[node.id] = UNCHANGED
            click.echo(f"  {node.id} ({node.name}): unchanged")
            continue

        try:
            outputs = registry.get(node.kind).provision(node, inputs)
        except ProvisioningError as e:
            result.errors[node.id] = e
            result.status[node.id] = FAILED
            for dependant in dependants_of(graphdict, node.id):
                blocked.setdefault(dependant, node.id)
            click.echo(click.style(f"  {node.id} ({node.name}): FAILED - {e}", fg="red"))
            continue

        result.materialized[node.id] = dict(outputs)
        result.status[node.id] = CREATED
        store.put(node.id, node.kind, node.name, digest, outputs)
        click.echo(f"  {node.id} ({node.name}): provisioned")

    result.orphaned = [node_id for node_id in store.node_ids() if node_id not in graph]
    if result.orphaned:
        logger.warning(
            f"State holds nodes no longer in the graph: {', '.join(result.orphaned)}"
        )
    store.save()
    return result
