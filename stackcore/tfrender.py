"""Terraform JSON renderer for ZoneStack.

Emits the resource graph as a Terraform JSON configuration: one ``module``
block per present node pinned to the catalog's module source, inputs with
references rewritten as module expressions, sensitive inputs routed
through ``sensitive`` variables, and one ``output`` per output binding.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import stackcore.config_loader as config_loader
from stackcore.models import OutputBinding, Ref, ResourceGraph
from stackcore.outputs import OUTPUT_BINDINGS
from stackcore.sensitive import Sensitive

logger = logging.getLogger(__name__)

MAIN_FILENAME = "main.tf.json"
SECRETS_FILENAME = "zonestack.secrets.auto.tfvars.json"

PROVIDER_REQUIREMENT = {"source": "IBM-Cloud/ibm", "version": ">= 1.70.0"}


def _interpolate(expression: str) -> str:
    return "${" + expression + "}"


def _sensitive_variable(key: str, record: Dict[str, Any]) -> Tuple[str, Optional[str]]:
    """Return (variable name, map key) holding a sensitive input."""
    if key == "preshared_key":
        return "vpn_preshared_keys", record.get("name")
    return key, None


class _Renderer:
    def __init__(self):
        self.variables: Dict[str, Dict[str, Any]] = {}
        self.secrets: Dict[str, Any] = {}

    def sensitive(self, key: str, value: Sensitive, record: Dict[str, Any]) -> str:
        variable, map_key = _sensitive_variable(key, record)
        if map_key is None:
            self.variables[variable] = {"type": "string", "sensitive": True}
            self.secrets[variable] = value.reveal()
            return _interpolate(f"var.{variable}")
        self.variables[variable] = {"type": "map(string)", "sensitive": True}
        self.secrets.setdefault(variable, {})[map_key] = value.reveal()
        return _interpolate(f'var.{variable}["{map_key}"]')

    def value(self, value: Any) -> Any:
        if isinstance(value, Ref):
            return _interpolate(value.expression())
        if isinstance(value, dict):
            rendered = {}
            for key, item in value.items():
                if isinstance(item, Sensitive):
                    rendered[key] = self.sensitive(key, item, value)
                else:
                    rendered[key] = self.value(item)
            return rendered
        if isinstance(value, (list, tuple)):
            return [self.value(item) for item in value]
        return value


def render_output(binding: OutputBinding, graph: ResourceGraph) -> Dict[str, Any]:
    """Terraform output block for one binding; null when its node is absent."""
    block: Dict[str, Any] = {"description": binding.description}
    if binding.policy == "derived":
        block["value"] = dict(graph.summary)
        return block
    node = graph.get(binding.node)
    if node is None:
        block["value"] = None
        return block
    if binding.policy == "compact_list":
        # subnet_N_id is only reported for slots the node actually declares
        present = [
            f"module.{node.id}.{attr}"
            for attr in binding.attributes
            if node.inputs.get(attr[: -len("_id")]) is not None
        ]
        block["value"] = _interpolate(f"compact([{', '.join(present)}])")
        return block
    block["value"] = _interpolate(f"module.{node.id}.{binding.attributes[0]}")
    return block


def render_stack(
    graph: ResourceGraph,
    catalog: Optional[Any] = None,
    module_overrides: Optional[Dict[str, Dict[str, str]]] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Render the graph as a Terraform JSON document.

    Args:
        graph: Assembled resource graph
        catalog: Catalog module (defaults to the 'ibm' catalog)
        module_overrides: Per-kind ``{"source", "version"}`` replacements

    Returns:
        tuple: (configuration document, secret variable values)
    """
    catalog = catalog or config_loader.load_catalog()
    renderer = _Renderer()
    renderer.variables["ibmcloud_api_key"] = {"type": "string", "sensitive": True}

    modules: Dict[str, Any] = {}
    for node in graph:
        block = config_loader.module_source(catalog, node.kind, module_overrides)
        block["name"] = node.name
        block.update(renderer.value(node.inputs))
        dependencies = graph.dependencies(node.id)
        if dependencies:
            block["depends_on"] = [f"module.{dep}" for dep in dependencies]
        modules[node.id] = block

    document = {
        "terraform": {"required_providers": {catalog.PROVIDER: PROVIDER_REQUIREMENT}},
        "provider": {
            catalog.PROVIDER: {
                "ibmcloud_api_key": _interpolate("var.ibmcloud_api_key"),
                "region": graph.summary.get("region"),
            }
        },
        "variable": dict(sorted(renderer.variables.items())),
        "module": modules,
        "output": {
            binding.name: render_output(binding, graph) for binding in OUTPUT_BINDINGS
        },
    }
    logger.debug(f"Rendered {len(modules)} module blocks")
    return document, renderer.secrets


def write_stack(
    graph: ResourceGraph,
    outdir: str,
    with_secrets: bool = False,
    catalog: Optional[Any] = None,
) -> Path:
    """Write ``main.tf.json`` (and optionally the secrets tfvars) into ``outdir``."""
    document, secrets = render_stack(graph, catalog)
    target = Path(outdir)
    target.mkdir(parents=True, exist_ok=True)
    main_path = target / MAIN_FILENAME
    with open(main_path, "w") as f:
        json.dump(document, f, indent=4)
    if with_secrets and secrets:
        with open(target / SECRETS_FILENAME, "w") as f:
            json.dump(secrets, f, indent=4, sort_keys=True)
    return main_path
