import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from . import __version__
from .cli_config import (
    build_config,
    create_sample_config,
    load_config,
    load_config_file,
    validate_config_values,
)
from .dependency import Dependency
from .error_handling import (
    DependencySourceError,
    ErrorCategory,
    get_error_handler,
    setup_error_handling,
)
from .reporting import DependencyReporter
from .shell import Shell
from .sources import SOURCE_TYPES, Source, enabled_sources, get_source_types
from .structured_logging import configure_logging

console = Console()
error_console = Console(stderr=True)


def collect_dependencies(
    sources: Sequence[Source], fail_fast: bool = False
) -> Tuple[Dict[str, List[Dependency]], Dict[str, str]]:
    """
    Run every source and gather its records.

    A failing source is recorded and the remaining sources still run, unless
    ``fail_fast`` is set.

    Args:
        sources: Sources to evaluate
        fail_fast: Re-raise the first source error

    Returns:
        Tuple of (records per source type, error message per failed source type)
    """
    results: Dict[str, List[Dependency]] = {}
    failures: Dict[str, str] = {}

    for source in sources:
        try:
            results[source.type] = source.dependencies()
        except DependencySourceError as e:
            if fail_fast:
                raise
            failures[source.type] = str(e)

    return results, failures


def output_json_results(
    root: str,
    results: Dict[str, List[Dependency]],
    failures: Dict[str, str],
    output_file: Optional[str] = None,
) -> None:
    """Export results as JSON."""
    payload = {
        "root": root,
        "total_dependencies": sum(len(deps) for deps in results.values()),
        "sources": {
            source_type: [
                {**dependency.to_dict(), "install_path": dependency.path}
                for dependency in dependencies
            ]
            for source_type, dependencies in results.items()
        },
    }
    if failures:
        payload["errors"] = failures

    json_output = json.dumps(payload, indent=2, ensure_ascii=False)

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(json_output)
        error_console.print(f"✅ Results saved to {output_file}", style="green")
    else:
        click.echo(json_output)


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    📦 dep-licenses: third-party dependency discovery for license audits

    Lists the packages installed by each package manager a project uses,
    normalized into one record format.
    """
    if version:
        console.print(f"dep-licenses version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@cli.command("list")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False),
    help="Project root directory (default: current directory)",
)
@click.option(
    "--source",
    "source_types",
    multiple=True,
    type=click.Choice(sorted(get_source_types())),
    help="Only run the given source type (repeatable)",
)
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default="console",
    help="Output format for results",
    show_default=True,
)
@click.option(
    "--output-file",
    "-o",
    type=click.Path(),
    help="Save results to file (JSON format only)",
)
@click.option("--fail-fast", is_flag=True, help="Stop at the first failing source")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-critical output")
def list_dependencies(
    root: Optional[str],
    source_types: Tuple[str, ...],
    output_format: str,
    output_file: Optional[str],
    fail_fast: bool,
    quiet: bool,
) -> None:
    """
    List the dependencies of a project.

    Examples:

      dep-licenses list

      dep-licenses list --root path/to/project --source npm

      dep-licenses list --output-format json -o dependencies.json
    """
    if output_file and output_format != "json":
        raise click.ClickException("Output file can only be used with JSON format")

    config = load_config(root)
    configure_logging(
        config.logging.log_level,
        config.logging.enable_json,
        config.logging.log_format,
    )
    setup_error_handling(getattr(logging, config.logging.log_level.upper(), logging.WARNING))
    if source_types:
        config = replace(config, sources={source_type: True for source_type in source_types})

    sources = enabled_sources(config)

    try:
        results, failures = collect_dependencies(sources, fail_fast)
    except DependencySourceError as e:
        error_console.print(f"❌ Error: {escape(str(e))}", style="red")
        sys.exit(1)

    if output_format == "json":
        output_json_results(str(config.pwd), results, failures, output_file)
    else:
        reporter = DependencyReporter(console)
        if not quiet:
            reporter.print_header(str(config.pwd))
            if not sources:
                console.print("ℹ️  No enabled sources found for this project.", style="yellow")
            for source_type, dependencies in results.items():
                reporter.print_dependencies(source_type, dependencies)
        reporter.print_failures(failures)
        if not quiet:
            reporter.print_summary(
                sum(len(deps) for deps in results.values()), len(sources), len(failures)
            )

    if failures:
        sys.exit(1)


@cli.command("sources")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False),
    help="Project root directory (default: current directory)",
)
def sources_command(root: Optional[str]) -> None:
    """Show which sources are configured and detected for a project."""
    config = load_config(root)
    shell = Shell(config.shell.timeout_seconds)

    rows = []
    for source_class in SOURCE_TYPES:
        source_type = source_class.source_type()
        rows.append(
            (source_type, config.enabled(source_type), source_class(config, shell).enabled())
        )

    DependencyReporter(console).print_sources(rows)


@cli.command()
def info():
    """Show information about supported sources and configuration."""
    source_list = "\n".join(
        f"• [green]{source_type}[/green]" for source_type in sorted(get_source_types())
    )
    info_text = f"""
[bold blue]📋 Supported Sources:[/bold blue]

{source_list}

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]DEP_LICENSES_ROOT[/cyan] - Project root directory
• [cyan]DEP_LICENSES_SOURCES[/cyan] - Comma separated source types to run
• [cyan]DEP_LICENSES_SHELL_TIMEOUT[/cyan] - Timeout for package manager commands
• [cyan]DEP_LICENSES_LOG_LEVEL[/cyan] - Log level

[bold blue]📄 Configuration Files:[/bold blue]

• [green].dep-licenses.yml[/green] - Project-level config (also .yaml, .json, .toml)
• [green]~/.config/dep-licenses/config.yml[/green] - User-level config

[bold blue]💡 Usage Examples:[/bold blue]

  # List every dependency
  dep-licenses list

  # JSON output for automation
  dep-licenses list --output-format json

  # Generate sample config
  dep-licenses config init
"""
    console.print(
        Panel(
            info_text,
            title="[bold]dep-licenses Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".dep-licenses.yml",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(f"⚠️  Config file already exists at {config_path}", style="yellow")
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_sample_config())
    except OSError as e:
        get_error_handler().error(
            ErrorCategory.FILESYSTEM,
            f"Cannot write {config_path}",
            "main",
            "config_init",
            exception=e,
        )
        raise click.ClickException(f"Failed to create config file: {e}")

    console.print(f"✅ Created configuration file at {config_path}", style="green")


@config.command("show")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False),
    help="Project root directory (default: current directory)",
)
def config_show(root: Optional[str]):
    """Show the configuration in effect for a project."""
    current_config = load_config(root)

    console.print(Panel("[bold blue]🔧 Configuration[/bold blue]", border_style="blue"))

    console.print(f"\n[bold cyan]📁 Root:[/bold cyan] {current_config.pwd}")

    console.print("\n[bold cyan]🔌 Sources:[/bold cyan]")
    for source_type in sorted(get_source_types()):
        state = "enabled" if current_config.enabled(source_type) else "disabled"
        console.print(f"  {source_type}: {state}")

    console.print("\n[bold cyan]🙈 Ignored:[/bold cyan]")
    if not any(current_config.ignored.values()):
        console.print("  (none)", style="dim")
    for source_type, names in current_config.ignored.items():
        for name in names:
            console.print(f"  {source_type}: {name}")

    console.print("\n[bold cyan]💎 Bundler:[/bold cyan]")
    without = current_config.bundler.without
    console.print(f"  Without: {', '.join(without) if without is not None else 'development, test (default)'}")

    console.print("\n[bold cyan]⚙️  Shell:[/bold cyan]")
    timeout = current_config.shell.timeout_seconds
    console.print(f"  Timeout: {f'{timeout}s' if timeout else 'none'}")

    console.print("\n[bold cyan]📝 Logging:[/bold cyan]")
    console.print(f"  Log Level: {current_config.logging.log_level}")
    console.print(f"  JSON Logs: {current_config.logging.enable_json}")


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    config_path = Path(config_file)
    config_data = load_config_file(config_path)

    if config_data is None:
        console.print(f"❌ Could not load config from {config_file}", style="red")
        sys.exit(1)

    if not isinstance(config_data, dict):
        console.print("❌ Configuration must be a mapping", style="red")
        sys.exit(1)

    errors = validate_config_values(build_config(config_data, config_path.parent))
    known = get_source_types()
    unknown = sorted(
        {
            source_type
            for section in ("sources", "ignored")
            if isinstance(config_data.get(section), dict)
            for source_type in config_data[section]
            if source_type not in known
        }
    )
    errors += [f"unknown source type: {source_type}" for source_type in unknown]

    if errors:
        console.print("❌ Configuration validation failed:", style="red")
        for error in errors:
            console.print(f"  • {error}", style="red")
        sys.exit(1)

    console.print(f"✅ Configuration file {config_file} is valid", style="green")


if __name__ == "__main__":
    cli()
