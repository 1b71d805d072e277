"""Main CLI entry point for nixfind."""

import json
import logging
import os
import sys
from typing import List

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.syntax import Syntax
from rich.table import Table

from ..core.configuration import ConfigurationManager, NixfindConfig
from ..core.exceptions import NixfindError
from ..core.interfaces import BuildResult, Package, SearchOptions
from ..index.builder import IndexBuilder
from ..index.reader import IndexReader
from ..registry.generator import RegistryGenerator
from ..search.engine import PackageSearchEngine

# Initialize rich console for better output formatting
console = Console()


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    # Check environment variable for log level override
    env_log_level = os.getenv('NIXFIND_LOG_LEVEL', '').upper()
    if env_log_level in ['DEBUG', 'INFO', 'WARNING', 'ERROR']:
        level = getattr(logging, env_log_level)
    else:
        level = logging.DEBUG if verbose else logging.INFO

    # Check environment variable for log format override
    log_format = os.getenv('NIXFIND_LOG_FORMAT', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    logging.basicConfig(
        level=level,
        format=log_format
    )


def load_config(ctx) -> NixfindConfig:
    """Load configuration for the current invocation."""
    return ConfigurationManager(ctx.obj['config']).load()


def fail(ctx, error: Exception):
    """Report an error and exit with status 1."""
    if isinstance(error, NixfindError):
        console.print(f"[red]Error:[/red] {escape(str(error))}")
    else:
        console.print(f"[red]Unexpected error:[/red] {escape(str(error))}")
        if ctx.obj['verbose']:
            console.print_exception()
    sys.exit(1)


def format_packages(packages: List[Package], output_format: str) -> str:
    """Format search results as JSON or YAML."""
    data = [package.to_dict() for package in packages]
    if output_format == "json":
        return json.dumps(data, indent=2)
    return yaml.dump(data, default_flow_style=False, sort_keys=False)


def display_search_results(packages: List[Package], query: str):
    """Display search results in a formatted table."""
    if not packages:
        console.print(f"[yellow]No packages found for:[/yellow] {escape(query)}")
        return

    table = Table(title=f"Search Results for '{escape(query)}'")
    table.add_column("Attribute", style="cyan", no_wrap=True)
    table.add_column("Name", style="magenta")
    table.add_column("Version", style="green")
    table.add_column("Description", style="white")
    table.add_column("Score", style="yellow", justify="right")

    for package in packages:
        description = package.description or "No description"
        table.add_row(
            escape(package.attribute),
            escape(package.name),
            escape(package.version),
            escape(description[:60] + ("..." if len(description) > 60 else "")),
            str(package.score)
        )

    console.print(table)


def display_build_result(result: BuildResult):
    """Display a summary of an index build."""
    summary_text = (
        f"Index: {result.output}\n"
        f"Registry entries: {result.registry_size}\n"
        f"Indexed packages: {result.package_count}\n"
        f"Parse time: {result.parse_seconds:.4f}s\n"
        f"Write time: {result.write_seconds:.4f}s"
    )
    if result.generate_seconds is not None:
        summary_text += f"\nEvaluation time: {result.generate_seconds:.4f}s"

    console.print(Panel(summary_text, title="Index Build Summary", border_style="blue"))


# Global options that apply to all commands
@click.group()
@click.option('--config', '-c', type=click.Path(),
              default=lambda: os.getenv('NIXFIND_CONFIG'),
              help='Path to configuration file (env: NIXFIND_CONFIG)')
@click.option('--verbose', '-v', is_flag=True,
              help='Enable verbose logging (env: NIXFIND_VERBOSE)')
@click.pass_context
def cli(ctx, config, verbose):
    """
    Build and search a local index of nixpkgs.

    \b
    Examples:

      # Index a registry generated earlier
      nixfind index registry registry.json

      # Evaluate nixpkgs and index it, keeping the registry
      nixfind index nixpkgs --save-registry registry.json

      # Search for a package
      nixfind search firefx

      # Only show packages that are already in the store
      nixfind search ripgrep --filter-built
    """
    ctx.ensure_object(dict)
    ctx.obj['config'] = config

    # Apply environment variable for verbose if not provided via CLI
    if not verbose and os.getenv('NIXFIND_VERBOSE', '').lower() in ['true', '1', 'yes']:
        verbose = True

    ctx.obj['verbose'] = verbose
    setup_logging(verbose)


@cli.group()
def index():
    """Build the package index."""
    pass


@index.command('registry')
@click.argument('registry', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False),
              help='Where to write the index (default: index.path from the configuration)')
@click.option('--skip-missing-version', is_flag=True,
              help='Skip installable packages without a version instead of failing')
@click.pass_context
def index_registry(ctx, registry, output, skip_missing_version):
    """
    Generate an index from a registry JSON file.

    The registry is the output of
    `nix-env --json -qa --meta --out-path`, for example one saved earlier with
    `nixfind index nixpkgs --save-registry`.
    """
    try:
        config = load_config(ctx)
        builder = IndexBuilder(output or config.index_path, skip_missing_version=skip_missing_version)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task(f"Indexing {registry}...", total=None)
            result = builder.build_from_file(registry)
            progress.update(task, completed=True)

        display_build_result(result)

    except Exception as e:
        fail(ctx, e)


@index.command('nixpkgs')
@click.argument('nixpkgs', required=False)
@click.option('--output', '-o', type=click.Path(dir_okay=False),
              help='Where to write the index (default: index.path from the configuration)')
@click.option('--save-registry', '-r', type=click.Path(dir_okay=False),
              help='Also save the generated registry to this file')
@click.option('--nixpkgs-config', '-c',
              help='Nix expression passed as the config argument to nixpkgs')
@click.option('--skip-missing-version', is_flag=True,
              help='Skip installable packages without a version instead of failing')
@click.pass_context
def index_nixpkgs(ctx, nixpkgs, output, save_registry, nixpkgs_config, skip_missing_version):
    """
    Generate an index by evaluating nixpkgs.

    NIXPKGS is the location of nixpkgs to evaluate. If omitted, the
    configured location or the <nixpkgs> entry of NIX_PATH is used.
    """
    try:
        config = load_config(ctx)
        generator = RegistryGenerator(
            nixpkgs=nixpkgs or config.generator.nixpkgs,
            nixpkgs_config=nixpkgs_config or config.generator.nixpkgs_config,
            command=config.generator.command,
        )
        builder = IndexBuilder(output or config.index_path, skip_missing_version=skip_missing_version)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Evaluating nixpkgs...", total=None)
            result = builder.build_from_generator(generator, save_registry=save_registry)
            progress.update(task, completed=True)

        display_build_result(result)

    except Exception as e:
        fail(ctx, e)


@cli.command()
@click.argument('query')
@click.option('--num-results', '-n', type=click.IntRange(min=1),
              help='Maximum number of results (default: search.limit from the configuration)')
@click.option('--filter-built/--no-filter-built', default=None,
              help='Only show packages whose store path exists on disk')
@click.option('--include-unbuildable', is_flag=True,
              help='Also show packages without a store path')
@click.option('--matches-only', is_flag=True,
              help='Hide packages whose name does not match the query at all')
@click.option('--index', '-i', 'index_path', type=click.Path(dir_okay=False),
              help='Index to search (default: index.path from the configuration)')
@click.option('--format', '-f', 'output_format', default='table',
              type=click.Choice(['table', 'json', 'yaml']), help='Output format')
@click.pass_context
def search(ctx, query, num_results, filter_built, include_unbuildable, matches_only, index_path, output_format):
    """
    Search the index for packages matching QUERY.

    Examples:

      # Basic search
      nixfind search firefox

      # Ten results, as JSON
      nixfind search rg -n 10 --format json
    """
    try:
        config = load_config(ctx)
        options = SearchOptions(
            limit=num_results or config.search.limit,
            filter_built=config.search.filter_built if filter_built is None else filter_built,
            require_store_path=not include_unbuildable,
            matches_only=matches_only,
            store_root=config.index.store_root,
        )

        engine = PackageSearchEngine(index_path or config.index_path)
        packages = engine.search(query, options)

        if output_format == 'table':
            display_search_results(packages, query)
        else:
            click.echo(format_packages(packages, output_format))

    except Exception as e:
        fail(ctx, e)


@cli.command()
@click.option('--index', '-i', 'index_path', type=click.Path(dir_okay=False),
              help='Index to inspect (default: index.path from the configuration)')
@click.pass_context
def info(ctx, index_path):
    """Show information about the index."""
    try:
        config = load_config(ctx)
        reader = IndexReader(index_path or config.index_path)
        index_info = reader.read_info()

        info_text = (
            f"Path: {reader.path}\n"
            f"Schema version: {index_info.schema_version}\n"
            f"Built at: {index_info.built_at or 'unknown'}\n"
            f"Source: {index_info.source or 'unknown'}\n"
            f"Packages: {index_info.package_count}"
        )
        console.print(Panel(info_text, title="Index", border_style="blue"))

    except Exception as e:
        fail(ctx, e)


def main() -> int:
    """Main CLI entry point."""
    try:
        cli(standalone_mode=False)
        return 0
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.Abort:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 130
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 130
    except SystemExit as e:
        return e.code
    except Exception as e:
        console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
        return 1


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command('init')
@click.option('--force', is_flag=True, help='Overwrite existing configuration')
@click.pass_context
def config_init(ctx, force):
    """Initialize nixfind configuration."""
    try:
        manager = ConfigurationManager(ctx.obj['config'])
        if manager.config_path.exists() and not force:
            console.print(f"[yellow]Configuration already exists at {manager.config_path}[/yellow]")
            console.print("Use --force to overwrite")
            return

        config_file = manager.write_default(force=force)
        console.print(f"✅ Configuration initialized at [cyan]{config_file}[/cyan]")

    except Exception as e:
        fail(ctx, e)


@config.command('show')
@click.option('--section', type=click.Choice(['index', 'search', 'generator']),
              help='Show specific configuration section')
@click.pass_context
def config_show(ctx, section):
    """Show the effective configuration."""
    try:
        manager = ConfigurationManager(ctx.obj['config'])
        config_data = manager.load().to_dict()

        if section:
            config_data = {section: config_data[section]}

        # Display configuration with syntax highlighting
        config_yaml = yaml.dump(config_data, default_flow_style=False, sort_keys=False)
        syntax = Syntax(config_yaml, "yaml", theme="monokai", line_numbers=True)
        console.print(Panel(syntax, title=f"Configuration: {manager.config_path}", border_style="blue"))

    except Exception as e:
        fail(ctx, e)


if __name__ == '__main__':
    sys.exit(main())
