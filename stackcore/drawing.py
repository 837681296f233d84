"""Drawing module for ZoneStack.

Renders the resource graph with Graphviz: one box per present node,
labelled with its kind and display name, and one arrow per edge pointing
from the provider of an attribute to its consumer (provisioning order).
"""

import logging
from typing import Optional

import click
from graphviz import Digraph

from stackcore.models import ResourceGraph

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ["png", "pdf", "svg", "bmp", "dot"]

NODE_COLOURS = {
    "network": "#dae8fc",
    "vpn": "#fff2cc",
    "storage": "#d5e8d4",
    "transit_gateway": "#e1d5e7",
    "workspace": "#f8cecc",
}


def make_digraph(graph: ResourceGraph, title: Optional[str] = None) -> Digraph:
    """Build a graphviz Digraph for ``graph`` without rendering it."""
    dot = Digraph(name="zonestack", comment=title or "ZoneStack resource graph")
    dot.attr(rankdir="LR", labelloc="t", label=title or "")
    dot.attr("node", shape="box", style="rounded,filled", fontname="Helvetica")
    for node in graph:
        dot.node(
            node.id,
            label=f"{node.kind}\n{node.name}",
            fillcolor=NODE_COLOURS.get(node.kind, "#ffffff"),
        )
    for edge in graph.edges:
        dot.edge(edge.target, edge.source, label=edge.attribute, fontsize="9")
    return dot


def render_graph(
    graph: ResourceGraph, outfile: str = "architecture", format: str = "png"
) -> str:
    """Render the graph to ``outfile.<format>`` and return the written path.

    The ``dot`` format writes Graphviz source only and needs no Graphviz
    binaries.
    """
    if format not in SUPPORTED_FORMATS:
        raise ValueError(
            f"Format '{format}' not supported. Must be one of: {', '.join(SUPPORTED_FORMATS)}"
        )
    title = f"{graph.summary.get('prefix', '')} landing zone".strip()
    dot = make_digraph(graph, title)
    if format == "dot":
        path = outfile if outfile.endswith(".dot") else f"{outfile}.dot"
        dot.save(path)
    else:
        path = dot.render(outfile, format=format, cleanup=True)
    click.echo(f"  Output file: {path}")
    logger.debug(f"Rendered {len(graph.nodes)} nodes to {path}")
    return path
