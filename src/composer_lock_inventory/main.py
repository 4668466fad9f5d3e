import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel

from .cli_config import (
    ComprehensiveConfig,
    apply_config_data,
    create_sample_config,
    get_config,
    load_config,
    load_config_file,
    validate_config_values,
)
from .engine import Engine
from .error_handling import (
    ConfigurationFault,
    ErrorCategory,
    get_error_handler,
    setup_error_handling,
)
from .reporting import InventoryReporter, output_json_results
from .structured_logging import configure_logging

__version__ = "1.0.0"

console = Console()


def _configure_logging(config: ComprehensiveConfig, verbose: bool) -> None:
    log_level = str(config.logging.log_level).upper()
    if verbose and log_level == "WARNING":
        log_level = "INFO"
    setup_error_handling(
        log_level=getattr(logging, log_level, logging.WARNING),
        log_format=config.logging.log_format,
    )
    configure_logging(log_level, enable_json=config.logging.enable_json)


def run_inventory(paths: Tuple[str, ...], config: ComprehensiveConfig) -> Engine:
    """Discover lock files under ``paths`` and expand them into dependencies."""
    engine = Engine(config=config)
    engine.scan(*paths)
    engine.analyze_dependencies()
    return engine


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    📦 composer-lock-inventory: dependency inventory from composer.lock files

    Reads Composer lock files and lists every locked PHP package as an
    evidence-bearing dependency record.
    """
    if version:
        console.print(f"composer-lock-inventory version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@cli.command()
@click.argument(
    "paths", nargs=-1, required=True, type=click.Path(exists=True, readable=True)
)
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Output format for results (default from config or console)",
)
@click.option(
    "--output-file",
    "-o",
    type=click.Path(),
    help="Save results to file (JSON format only)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-critical output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show identity hashes and log analysis progress",
)
@click.option(
    "--fail-on-skip",
    is_flag=True,
    help="Exit with error code if a lock file could not be read or parsed",
)
def scan(
    paths: Tuple[str, ...],
    output_format: Optional[str],
    output_file: Optional[str],
    quiet: bool,
    verbose: bool,
    fail_on_skip: bool,
) -> None:
    """
    Build a dependency inventory from composer.lock files.

    PATHS may be lock files or directories to search.

    Examples:

      composer-lock-inventory scan composer.lock

      composer-lock-inventory scan ./projects --output-format json -o inventory.json
    """
    config = load_config()
    quiet = quiet or config.scan.quiet
    verbose = verbose or config.scan.verbose
    final_format = (output_format or config.scan.output_format).lower()
    final_fail_on_skip = fail_on_skip or config.scan.fail_on_skip

    if output_file and final_format != "json":
        raise click.ClickException("Output file can only be used with JSON format")

    _configure_logging(config, verbose)

    if not quiet and final_format == "console":
        console.print(
            Panel(
                f"📦 [bold blue]composer-lock-inventory[/bold blue] v{__version__}",
                border_style="blue",
            )
        )

    try:
        engine = run_inventory(paths, config)
    except ConfigurationFault as e:
        get_error_handler().error(
            ErrorCategory.CONFIGURATION, str(e), "main", "scan", exception=e
        )
        Console(stderr=True).print(f"❌ Configuration error: {e}", style="red")
        sys.exit(1)

    records = engine.records
    skipped = engine.skipped

    if final_format == "json":
        output_json_results(records, skipped, output_file)
    elif not quiet or skipped:
        InventoryReporter(console).print_results(records, skipped, verbose=verbose)

    if skipped and final_fail_on_skip:
        sys.exit(1)


@cli.command()
def info():
    """Show information about supported files and configuration."""
    info_text = """
[bold blue]📋 Supported Files:[/bold blue]

• [green]composer.lock[/green] - Composer (PHP) lock file, sections "packages" and "packages-dev"

[bold blue]🔍 Evidence per Package:[/bold blue]

• [yellow]vendor[/yellow] - the part of the package name before "/"
• [yellow]product[/yellow] - the part of the package name after "/"
• [yellow]version[/yellow] - the locked version, verbatim
  All evidence is recorded at HIGHEST confidence with source composer.lock.

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]COMPOSER_LOCK_INVENTORY_ENABLED[/cyan] - Enable or disable the analyzer
• [cyan]COMPOSER_LOCK_INVENTORY_HASH_ALGORITHM[/cyan] - Identity digest (default sha1)
• [cyan]COMPOSER_LOCK_INVENTORY_MAX_FILE_SIZE_MB[/cyan] - Largest lock file accepted
• [cyan]COMPOSER_LOCK_INVENTORY_LOG_LEVEL[/cyan] - Logging level
• [cyan]COMPOSER_LOCK_INVENTORY_FAIL_ON_SKIP[/cyan] - Fail when a lock file is skipped

[bold blue]📄 Configuration Files:[/bold blue]

• [green].composer-lock-inventory.json[/green] / [green].yaml[/green] - Project-level config
• [green]~/.config/composer-lock-inventory/config.json[/green] - User-level config

[bold blue]💡 Usage Examples:[/bold blue]

  composer-lock-inventory scan composer.lock
  composer-lock-inventory scan . --output-format json
  composer-lock-inventory config init
"""
    console.print(
        Panel(
            info_text,
            title="[bold]composer-lock-inventory Information[/bold]",
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
    default=".composer-lock-inventory.json",
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
        raise click.ClickException(f"Failed to create config file: {e}")

    console.print(f"✅ Created configuration file at {config_path}", style="green")


@config.command("show")
def config_show():
    """Show current configuration settings."""
    current_config = get_config()

    console.print(Panel("[bold blue]🔧 Configuration[/bold blue]", border_style="blue"))

    console.print("\n[bold cyan]🔍 Analyzer Settings:[/bold cyan]")
    console.print(f"  Composer Lock Enabled: {current_config.analyzers.composer_lock_enabled}")
    console.print(f"  Hash Algorithm: {current_config.analyzers.hash_algorithm}")

    console.print("\n[bold cyan]📊 Scan Settings:[/bold cyan]")
    console.print(f"  Output Format: {current_config.scan.output_format}")
    console.print(f"  Fail on Skip: {current_config.scan.fail_on_skip}")
    console.print(f"  Excluded Directories: {', '.join(current_config.scan.exclude_dirs)}")

    console.print("\n[bold cyan]🔒 Security Settings:[/bold cyan]")
    console.print(f"  Max File Size: {current_config.security.max_file_size_mb} MB")

    console.print("\n[bold cyan]📝 Logging Settings:[/bold cyan]")
    console.print(f"  Log Level: {current_config.logging.log_level}")
    console.print(f"  Structured Events: {current_config.logging.enable_json}")


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True))
def config_validate(config_file: str):
    """Validate a configuration file."""
    config_data = load_config_file(Path(config_file))

    if not isinstance(config_data, dict):
        raise click.ClickException(f"Could not load config from {config_file}")

    candidate = ComprehensiveConfig()
    errors = apply_config_data(candidate, config_data)
    errors.extend(validate_config_values(candidate))
    if errors:
        for error in errors:
            console.print(f"  • {error}", style="red")
        raise click.ClickException("Configuration validation failed")

    console.print(
        f"✅ Configuration file {config_file} is valid", style="green", soft_wrap=True
    )


if __name__ == "__main__":
    cli()
