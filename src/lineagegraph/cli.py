"""Command-line interface for LineageGraph."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from pathlib import Path

import click
from pydantic import ValidationError

from lineagegraph import __version__
from lineagegraph.config import (
    ProjectConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from lineagegraph.exceptions import LineageGraphError, NoTargetError
from lineagegraph.ui.console import Console

console = Console()

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")


def _get_project_root(path: str | None = None) -> Path:
    """Find the project root or error."""
    if path:
        root = Path(path).resolve()
        if not root.exists():
            console.error(f"Path does not exist: {path}")
            sys.exit(1)
        return root

    root = find_project_root()
    if root is None:
        console.error(
            "No LineageGraph project found. Run 'lineagegraph init' first, "
            "or specify a path with --path."
        )
        sys.exit(1)
    return root


def _load_config(root: Path) -> ProjectConfig:
    try:
        return load_config(root)
    except LineageGraphError as e:
        console.error(str(e))
        sys.exit(1)


def _build_graph(root: Path, config: ProjectConfig, show_progress: bool = True):
    """Parse the project and build its call graph."""
    from lineagegraph.graph.builder import GraphBuilder

    builder = GraphBuilder()
    if not show_progress:
        builder.build_from_directory(root, config)
        return builder

    with console.indexing_progress() as progress:
        task = progress.add_task("Parsing...", total=None)

        def on_progress(file_path: str, current: int, total: int):
            progress.update(
                task, total=total, completed=current, description=f"Parsing {Path(file_path).name}"
            )

        builder.build_from_directory(root, config, on_progress)
    return builder


def _locate(root: Path, graph, file: str, line: int):
    """The routine enclosing FILE:LINE, as the graph knows it."""
    from lineagegraph.graph.query import RoutineQuery

    try:
        rel_path = Path(file).resolve().relative_to(root).as_posix()
    except ValueError:
        raise NoTargetError(f"{file} is outside the project at {root}") from None

    routine = RoutineQuery(graph).routine_at(rel_path, line)
    if routine is None:
        raise NoTargetError(f"No routine encloses {rel_path}:{line}")
    return routine


def _check_llm(config: ProjectConfig) -> None:
    """Exit early when a hosted provider has no API key."""
    llm_config = config.llm
    if not llm_config.api_key and llm_config.provider not in ("local",):
        provider = llm_config.provider
        env_var = {"openai": "OPENAI_API_KEY", "anthropic": "ANTHROPIC_API_KEY"}.get(
            provider, f"{provider.upper()}_API_KEY"
        )
        console.error(
            f"No API key found for {provider}. "
            f"Set the {env_var} environment variable or configure it with:\n"
            f"  lineagegraph config set llm.api_key_env {env_var}"
        )
        sys.exit(1)


def _read_input(stream) -> str:
    text = stream.read()
    if not text.strip():
        console.error("No input given.")
        sys.exit(1)
    return text


@click.group()
@click.version_option(version=__version__, prog_name="lineagegraph")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """LineageGraph - data lineage reports from the code a routine reaches."""
    setup_logging(verbose)


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--provider", default=None, help="LLM provider (local, openai, anthropic).")
@click.option("--model", default=None, help="LLM model name.")
def init(path: str | None, provider: str | None, model: str | None):
    """Initialize LineageGraph for a repository and report what it parsed."""
    root = Path(path or ".").resolve()
    if not root.exists():
        console.error(f"Path does not exist: {root}")
        sys.exit(1)

    console.banner()
    console.info(f"Initializing LineageGraph for: {root}")

    config = _load_config(root)
    config.name = root.name
    config.root_path = str(root)
    if provider:
        config.llm.provider = provider
    if model:
        config.llm.model = model

    save_config(root, config)
    console.success("Configuration saved")

    start_time = time.time()
    builder = _build_graph(root, config)
    stats = builder.get_stats()
    console.success(f"Parsed {stats['files']} files in {time.time() - start_time:.1f}s")
    console.show_stats(stats)


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
def stats(path: str | None):
    """Show call graph statistics for the project."""
    root = _get_project_root(path)
    config = _load_config(root)
    builder = _build_graph(root, config)
    console.show_stats(builder.get_stats())


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=click.IntRange(min=1))
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--raw", is_flag=True, help="Print the rendered context instead of a summary.")
def context(file: str, line: int, path: str | None, raw: bool):
    """Collect the code context of the routine at FILE:LINE."""
    from lineagegraph.context.collector import ContextCollector
    from lineagegraph.graph.adapter import GraphSymbolAdapter

    root = _get_project_root(path)
    config = _load_config(root)
    builder = _build_graph(root, config, show_progress=not raw)

    try:
        routine = _locate(root, builder.graph, file, line)
        document = ContextCollector(GraphSymbolAdapter(builder.graph)).collect(routine)
    except LineageGraphError as e:
        console.error(str(e))
        sys.exit(1)

    if raw:
        click.echo(document.render(config.context.comment_prefix))
    else:
        console.show_context(document)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=click.IntRange(min=1))
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option(
    "--diagram-out",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the repaired Mermaid diagram to this file.",
)
@click.option("--prompt-only", is_flag=True, help="Print the prompt without calling the model.")
def lineage(file: str, line: int, path: str | None, diagram_out: str | None, prompt_only: bool):
    """Generate a data lineage report for the routine at FILE:LINE."""
    from lineagegraph.graph.adapter import GraphSymbolAdapter
    from lineagegraph.lineage.service import LineageService
    from lineagegraph.llm.gateway import ModelGateway

    root = _get_project_root(path)
    config = _load_config(root)
    if not prompt_only:
        _check_llm(config)
    builder = _build_graph(root, config, show_progress=not prompt_only)

    try:
        routine = _locate(root, builder.graph, file, line)
        adapter = GraphSymbolAdapter(builder.graph)
        if prompt_only:
            service = LineageService(adapter, gateway=None, context_config=config.context)
            _, prompt = service.build_prompt(routine)
            click.echo(prompt)
            return

        service = LineageService(
            adapter, ModelGateway.from_config(config.llm), context_config=config.context
        )
        console.info(f"Generating lineage for {routine.qualified_name} with {config.llm.model}")
        report = asyncio.run(service.run(routine))
    except LineageGraphError as e:
        console.error(str(e))
        sys.exit(1)

    console.show_report(report.report)
    if not report.has_diagram:
        console.warning(report.diagram_error)
        return

    console.code(report.repaired_diagram, language="text")
    if diagram_out:
        Path(diagram_out).write_text(report.repaired_diagram + "\n", encoding="utf-8")
        console.success(f"Diagram written to {diagram_out}")


@main.command()
@click.argument("source", type=click.File("r"), default="-")
def extract(source):
    """Print the first Mermaid block found in SOURCE (default: stdin)."""
    from lineagegraph.diagram.extractor import extract_diagram

    diagram = extract_diagram(_read_input(source))
    if diagram is None:
        console.error("No Mermaid diagram found.")
        sys.exit(1)
    click.echo(diagram)


@main.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option(
    "--from-report",
    is_flag=True,
    help="SOURCE is a full model response; repair its first Mermaid block.",
)
def repair(source, from_report: bool):
    """Repair Mermaid flowchart text from SOURCE (default: stdin)."""
    from lineagegraph.diagram.repair import extract_and_repair
    from lineagegraph.diagram.repair import repair as repair_diagram

    text = _read_input(source)
    try:
        fixed = extract_and_repair(text) if from_report else repair_diagram(text)
    except LineageGraphError as e:
        console.error(str(e))
        sys.exit(1)
    click.echo(fixed)


@main.command("gen-tests")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.argument("line", type=click.IntRange(min=1))
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--overwrite", is_flag=True, help="Replace an existing test file.")
@click.option("--print-only", is_flag=True, help="Print the generated class instead of writing it.")
def gen_tests(file: str, line: int, path: str | None, overwrite: bool, print_only: bool):
    """Generate unit tests for the routine at FILE:LINE."""
    from lineagegraph.graph.adapter import GraphSymbolAdapter
    from lineagegraph.lineage.testgen import UnitTestGenerator
    from lineagegraph.lineage.writer import UnitTestWriter
    from lineagegraph.llm.gateway import ModelGateway

    root = _get_project_root(path)
    config = _load_config(root)
    _check_llm(config)
    builder = _build_graph(root, config)

    try:
        routine = _locate(root, builder.graph, file, line)
        generator = UnitTestGenerator(
            GraphSymbolAdapter(builder.graph),
            ModelGateway.from_config(config.llm),
            settings=config.testgen,
            context_config=config.context,
        )
        console.info(f"Generating {config.testgen.framework} tests for {routine.qualified_name}")
        generated = asyncio.run(generator.generate(routine))
    except LineageGraphError as e:
        console.error(str(e))
        sys.exit(1)

    if print_only:
        click.echo(generated.code)
        return

    writer = UnitTestWriter(root, overwrite=overwrite or config.testgen.overwrite)
    target = writer.write(
        generated.source_path, generated.class_name, generated.code, generated.language
    )
    console.success(f"Tests written to {target.relative_to(root).as_posix()}")


@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage LineageGraph configuration."""
    root = _get_project_root(path)
    config = _load_config(root)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump(), indent=2))
    elif action == "get":
        if not key:
            console.error("Usage: lineagegraph config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: lineagegraph config set <key> <value>")
            sys.exit(1)
        try:
            # Try to parse as JSON for non-string values
            try:
                parsed_value = json.loads(value)
            except json.JSONDecodeError:
                parsed_value = value

            try:
                config = set_config_value(config, key, parsed_value)
            except ValidationError:
                # "11" parses as an int but java_version is a string field
                parsed_value = value
                config = set_config_value(config, key, parsed_value)
            save_config(root, config)
            console.success(f"Set {key} = {parsed_value}")
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ValidationError as e:
            console.error(f"Invalid value for {key}: {e.errors()[0]['msg']}")
            sys.exit(1)


if __name__ == "__main__":
    main()
