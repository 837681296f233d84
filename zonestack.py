#!/usr/bin/env python
import json
import logging
import sys

import click

import stackcore.config_loader as config_loader
import stackcore.drawing as drawing
import stackcore.engine as engine
import stackcore.graphmaker as graphmaker
import stackcore.inputs as inputs
import stackcore.outputs as outputs
import stackcore.provisioners as provisioners
import stackcore.tfrender as tfrender
import stackcore.validator as validator
from stackcore import __version__
from stackcore.exceptions import ValidationError, ZoneStackError
from stackcore.state import StateStore


def my_excepthook(exc_type, exc_value, exc_traceback):
    print(f"Unhandled error: {exc_type}, {exc_value}, {exc_traceback}")


def _show_banner():
    banner = (
        "\n"
        "  _____                 ____  _             _    \n"
        " |__  /___  _ __   ___ / ___|| |_ __ _  ___| | __\n"
        "   / // _ \\| '_ \\ / _ \\\\___ \\| __/ _` |/ __| |/ /\n"
        "  / /| (_) | | | |  __/ ___) | || (_| | (__|   < \n"
        " /____\\___/|_| |_|\\___||____/ \\__\\__,_|\\___|_|\\_\\\n"
        "\n"
    )
    click.echo(banner)


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if not debug:
        sys.excepthook = my_excepthook


def _fail(message: str) -> None:
    click.echo(click.style(f"\nERROR: {message}\n", fg="red", bold=True))
    sys.exit(1)


def _report_validation_errors(error: ValidationError) -> None:
    click.echo(
        click.style(
            f"\nERROR: {len(error.failures)} input validation rule(s) failed:\n",
            fg="red",
            bold=True,
        )
    )
    for failure in error.failures:
        click.echo(
            click.style(f"  {failure.field} [{failure.rule}]: ", fg="red")
            + failure.message
        )
    click.echo()


def compile_inputs(varfile: list, var: list, strict: bool):
    """Load, merge and validate every input source.

    Args:
        varfile: Variable file paths
        var: ``key=value`` overrides
        strict: Enforce cross-field requiredness rules

    Returns:
        InputSet: Validated input set (exits on any failure)
    """
    click.echo(click.style("\nLoading inputs..", fg="white", bold=True))
    try:
        raw = inputs.load_inputs(varfile, var)
        return validator.validate_inputs(raw, strict=strict)
    except ValidationError as e:
        _report_validation_errors(e)
        sys.exit(1)
    except ZoneStackError as e:
        _fail(str(e))


def compile_graph(varfile: list, var: list, strict: bool):
    """Validate inputs and assemble the conditional resource graph."""
    inputset = compile_inputs(varfile, var, strict)
    click.echo(click.style("\nBuilding resource graph..", fg="white", bold=True))
    try:
        graph = graphmaker.build_graph(inputset)
    except ZoneStackError as e:
        _fail(str(e))
    click.echo(f"  Provisioning order: {' -> '.join(graph.order)}")
    return graph


def _print_json(title: str, data) -> None:
    click.echo(click.style(f"\n{title}:\n", fg="white", bold=True))
    click.echo(json.dumps(data, indent=4, sort_keys=True))


def _write_json(outfile: str, data) -> None:
    if not outfile.endswith(".json"):
        outfile += ".json"
    click.echo(f"\nExporting into file {outfile}")
    with open(outfile, "w") as f:
        json.dump(data, f, indent=4, sort_keys=True)


def input_options(func):
    """Options shared by every command that reads an input set."""
    func = click.option(
        "--strict",
        is_flag=True,
        default=False,
        help="Require kms_key_crn whenever enable_kms_encryption is true",
    )(func)
    func = click.option(
        "--var",
        multiple=True,
        default=[],
        help="Override a single input (key=value, JSON for non-string fields)",
    )(func)
    func = click.option(
        "--varfile",
        multiple=True,
        default=[],
        help="Path to a .tfvars, .yaml or .json variables file",
    )(func)
    func = click.option(
        "--debug", is_flag=True, default=False, help="Verbose logging and tracebacks"
    )(func)
    return func


@click.version_option(version=__version__, prog_name="zonestack")
@click.group()
def cli():
    """
    ZoneStack validates landing zone inputs and assembles the conditional
    resource graph handed to the provisioning engine

    For help with a specific command type:

    zonestack [COMMAND] --help

    """
    pass


@cli.command()
@input_options
def validate(debug, varfile, var, strict):
    """Validate inputs and list every violated rule"""
    _configure_logging(debug)
    _show_banner()
    compile_inputs(varfile, var, strict)
    click.echo(click.style("\nInputs are valid.", fg="green", bold=True))


@cli.command()
@input_options
@click.option(
    "--outfile",
    default="graphdata",
    help="Filename for output graph (default graphdata.json)",
)
def graphdata(debug, varfile, var, strict, outfile):
    """List resource nodes, inputs and edges as JSON"""
    _configure_logging(debug)
    _show_banner()
    graph = compile_graph(varfile, var, strict)
    data = graphmaker.export_graphdata(graph)
    _print_json("Resource graph", data)
    _write_json(outfile, data)
    click.echo("\nCompleted!")


@cli.command()
@input_options
@click.option("--outdir", default=".", help="Directory for main.tf.json")
@click.option(
    "--with-secrets",
    is_flag=True,
    default=False,
    help="Also write sensitive inputs to a .auto.tfvars.json file",
)
@click.option("--api-key-file", default="", help="File holding the IBM Cloud API key")
def render(debug, varfile, var, strict, outdir, with_secrets, api_key_file):
    """Render the resource graph as Terraform JSON"""
    _configure_logging(debug)
    _show_banner()
    graph = compile_graph(varfile, var, strict)
    click.echo(click.style("\nRendering Terraform configuration..", fg="white", bold=True))
    path = tfrender.write_stack(graph, outdir, with_secrets=with_secrets)
    click.echo(f"  Written: {path}")
    if not inputs.credential_present(api_key_file or None):
        click.echo(
            click.style(
                "\nWARNING: No API key found in --api-key-file, IC_API_KEY or IBMCLOUD_API_KEY. "
                "Terraform will need one to apply this configuration.",
                fg="yellow",
                bold=True,
            )
        )
    click.echo("\nCompleted!")


@cli.command()
@input_options
@click.option(
    "--outfile",
    default="architecture",
    help="Filename for output diagram (default architecture.png)",
)
@click.option("--format", default="png", help="File format (png/pdf/svg/bmp/dot)")
def draw(debug, varfile, var, strict, outfile, format):
    """Draw the resource graph with Graphviz"""
    _configure_logging(debug)
    _show_banner()
    graph = compile_graph(varfile, var, strict)
    click.echo(click.style("\nDrawing resource graph..", fg="white", bold=True))
    try:
        drawing.render_graph(graph, outfile, format)
    except ValueError as e:
        _fail(str(e))
    click.echo("\nCompleted!")


@cli.command()
@input_options
@click.option(
    "--state",
    default="zonestack.state.json",
    help="State file recording previously applied nodes",
)
def apply(debug, varfile, var, strict, state):
    """Walk the graph through the simulated provisioning backend"""
    _configure_logging(debug)
    _show_banner()
    graph = compile_graph(varfile, var, strict)
    click.echo(click.style("\nApplying (simulated backend)..", fg="white", bold=True))
    try:
        store = StateStore(state)
        registry = provisioners.simulated_registry(config_loader.load_catalog())
        result = engine.apply_graph(graph, registry, store)
    except ZoneStackError as e:
        _fail(str(e))
    _print_json("Outputs", outputs.project_outputs(graph, result.materialized))
    if not result.succeeded:
        _fail(
            f"{len(result.errors)} node(s) failed, "
            f"{list(result.status.values()).count(engine.SKIPPED)} skipped"
        )
    click.echo("\nCompleted!")


@cli.command(name="outputs")
@input_options
@click.option(
    "--state",
    default="zonestack.state.json",
    help="State file recording previously applied nodes",
)
@click.option("--outfile", default="", help="Also write outputs to this JSON file")
def show_outputs(debug, varfile, var, strict, state, outfile):
    """Project recorded node attributes onto the output contract"""
    _configure_logging(debug)
    graph = compile_graph(varfile, var, strict)
    try:
        store = StateStore(state)
    except ZoneStackError as e:
        _fail(str(e))
    materialized = {}
    for node_id in store.node_ids():
        if node_id in graph:
            materialized[node_id] = store.get(node_id)["outputs"]
    data = outputs.project_outputs(graph, materialized)
    _print_json("Outputs", data)
    if outfile:
        _write_json(outfile, data)


if __name__ == "__main__":
    cli()
