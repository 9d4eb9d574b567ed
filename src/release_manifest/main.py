"""
Command-line interface for release-manifest.
"""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel

from .cli_config import (
    config_from_mapping,
    create_sample_config,
    get_config,
    load_config_file,
    validate_config_values,
)
from .errors import ManifestError
from .pipeline import RunConfig, run_pipeline
from .reporting import ManifestReporter
from .structured_logging import configure_logging

__version__ = "1.0.0"

console = Console()


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    📦 release-manifest: build a release dependency manifest

    Merges a directory of name=version manifest files into a single,
    deduplicated and sorted Dependency,Version CSV.
    """
    if version:
        console.print(f"release-manifest version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        return

    settings = get_config()
    configure_logging(settings.logging.log_level, settings.logging.json_format)


@cli.command()
@click.option(
    "--dir",
    "-d",
    "manifest_dir",
    required=True,
    type=click.Path(file_okay=False),
    help="Directory of files to be processed",
)
@click.option(
    "--version",
    "-v",
    "release_version",
    required=True,
    help="Version of the manifest being processed",
)
def manifest(manifest_dir: str, release_version: str) -> None:
    """
    Create a CSV manifest from a directory of manifests, sorted by dependency name.

    Takes the union of the name=version lines of every file in the directory
    and writes union.txt, unsorted.txt, sorted.txt and manifest.csv into a
    results/ subdirectory.

    Examples:

      release-manifest manifest --dir /path/to/manifests --version 1.0.0
    """
    entry_point = click.get_current_context().command_path
    run_config = RunConfig(source_dir=Path(manifest_dir), version=release_version)

    try:
        result = run_pipeline(run_config, get_config(), entry_point=entry_point)
    except ManifestError as e:
        Console(stderr=True).print(f"❌ Error: {e}", style="red", markup=False)
        sys.exit(1)
    except Exception as e:
        Console(stderr=True).print(
            f"❌ Unexpected error: {e}", style="red", markup=False
        )
        sys.exit(1)

    ManifestReporter(console).print_run_summary(result)


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".release-manifest.json",
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
        Console(stderr=True).print(f"❌ Failed to create config file: {e}", style="red")
        sys.exit(1)

    console.print(f"✅ Created configuration file at {config_path}", style="green")
    console.print("Edit this file to customize your settings", style="dim")


@config.command("show")
def config_show():
    """Show the effective configuration settings."""
    console.print(
        Panel(
            json.dumps(get_config().to_dict(), indent=2),
            title="[bold]Current Configuration[/bold]",
            border_style="blue",
        )
    )


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    try:
        file_config = load_config_file(Path(config_file))
    except ValueError as e:
        Console(stderr=True).print(f"❌ {e}", style="red", markup=False)
        sys.exit(1)

    errors = []
    for section in file_config or {}:
        if section not in ("pipeline", "logging"):
            errors.append(f"Unknown config section: {section}")
    errors.extend(validate_config_values(config_from_mapping(file_config)))

    if errors:
        console.print("❌ Configuration is invalid:", style="red")
        for error in errors:
            console.print(f"  • {error}", style="red")
        sys.exit(1)

    console.print(f"✅ {config_file} is valid", style="green")


if __name__ == "__main__":
    cli()
