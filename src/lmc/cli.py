"""lmc CLI - build and query the lightweight module cache.

This module provides a typer-based CLI exposing the ``build``, ``search``,
``like`` and ``help`` subcommands.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from lmc.cache.builder import CacheBuilder
from lmc.cache.models import BinaryEntry, MatchMode
from lmc.cache.search import SearchEngine
from lmc.cache.store import IndexStore
from lmc.common.config import LmcConfig
from lmc.common.errors import ConfigurationError, LmcError
from lmc.common.logging import setup_logging

app = typer.Typer(
    name="lmc",
    help="lmc: lightweight module cache - find which module provides a binary",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def fail(message: str) -> typer.Exit:
    """Report a fatal error on stderr and build the matching Exit."""
    err_console.print(f"[bold red]error:[/bold red] {message}", soft_wrap=True)
    return typer.Exit(1)


def get_config(ctx: typer.Context) -> LmcConfig:
    return ctx.obj["config"]


def open_store(config: LmcConfig) -> IndexStore:
    """Resolve the data directory and open the index store."""
    try:
        db_path = config.database_path()
    except ConfigurationError as err:
        raise fail(str(err)) from err

    try:
        return IndexStore(db_path)
    except LmcError as err:
        raise fail(str(err)) from err


def print_results(results: list[BinaryEntry], output_json: bool) -> None:
    if output_json:
        data = [entry.to_dict() for entry in results]
        console.print(json.dumps(data, indent=2), markup=False, highlight=False, soft_wrap=True)
        return

    for entry in results:
        console.print(entry.format(), markup=False, highlight=False, soft_wrap=True)


@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Data directory (default: ~/.cache/lmc)"),
    module_path: str | None = typer.Option(
        None, "--module-path", "-m", help="Module path string (default: $MODULEPATH)"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output (DEBUG level)"),
    env_file: Path | None = typer.Option(None, "--env-file", help="Path to .env configuration file"),
):
    """
    Lightweight module cache.

    Crawls the module roots in MODULEPATH, records which executables each
    module would add to PATH, and answers lookups from that cache.

    Examples:
        # Rebuild the cache
        lmc build

        # Which module provides gcc?
        lmc search gcc

        # Anything that looks like python
        lmc like python
    """
    ctx.ensure_object(dict)

    try:
        config = LmcConfig.load(env_file=env_file)
        if data_dir is not None:
            config.data_dir = data_dir
        if module_path is not None:
            config.module_path = module_path
        if verbose:
            config.verbose = True
        config.require_valid()
    except ConfigurationError as err:
        raise fail(str(err)) from err

    logger = setup_logging("lmc", level=config.effective_log_level, log_file=config.log_file)
    ctx.obj["config"] = config
    ctx.obj["logger"] = logger

    if not config.module_path:
        logger.warning("MODULEPATH not set")
    for root in config.module_roots:
        logger.debug(f"using module root {root}")


@app.command()
def build(
    ctx: typer.Context,
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Module roots crawled in parallel"),
    share_variables: bool = typer.Option(
        False, "--share-variables", help="Let Tcl 'set' statements leak into later module files"
    ),
):
    """Rebuild the module cache."""
    config = get_config(ctx)
    store = open_store(config)
    config.share_variables = config.share_variables or share_variables
    if jobs is not None:
        config.jobs = jobs

    ctx.obj["logger"].debug(f"proceeding with verified data directory {config.data_dir}")

    try:
        builder = CacheBuilder(
            store,
            config.module_roots,
            share_variables=config.share_variables,
            jobs=config.jobs,
        )
        report = builder.build()
    except LmcError as err:
        raise fail(str(err)) from err
    finally:
        store.close()

    summary = f"lmc: cached {report.inserted} binaries from {report.modules} modules in {report.duration:.2f} seconds"
    if report.warnings:
        summary += f" ({len(report.warnings)} warnings)"
    if report.insert_failures:
        summary += f" ({report.insert_failures} failed inserts)"
    err_console.print(summary, markup=False, highlight=False, soft_wrap=True)


def _search(ctx: typer.Context, name: str, mode: MatchMode, output_json: bool, unique: bool, ignore_case: bool):
    store = open_store(get_config(ctx))
    try:
        results = SearchEngine(store).search(name, mode, ignore_case=ignore_case, distinct=unique)
    except LmcError as err:
        raise fail(str(err)) from err
    finally:
        store.close()

    print_results(results, output_json)


@app.command()
def search(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Exact binary name"),
    output_json: bool = typer.Option(False, "--json", "-J", help="Output as JSON"),
    unique: bool = typer.Option(False, "--unique", "-u", help="Drop duplicate results"),
):
    """Search for exact providers of a binary."""
    _search(ctx, name, MatchMode.EXACT, output_json, unique, ignore_case=False)


@app.command()
def like(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Part of a binary name"),
    output_json: bool = typer.Option(False, "--json", "-J", help="Output as JSON"),
    unique: bool = typer.Option(False, "--unique", "-u", help="Drop duplicate results"),
    ignore_case: bool = typer.Option(False, "--ignore-case", "-i", help="Fold ASCII case when matching"),
):
    """Search for similar providers of a binary."""
    _search(ctx, name, MatchMode.SIMILAR, output_json, unique, ignore_case)


@app.command("help")
def show_help(ctx: typer.Context):
    """Show this message."""
    console.print(ctx.parent.get_help() if ctx.parent else ctx.get_help(), markup=False, highlight=False)


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
