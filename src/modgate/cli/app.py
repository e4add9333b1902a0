"""Typer CLI application."""

import asyncio
import json
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from modgate import __version__
from modgate.core.api import ModrinthClient
from modgate.core.config import (
    CONFIG_KEY_MAP,
    ConfigValidationError,
    generate_config,
    get_all_config_values,
    get_config_value,
    get_default_config_path,
    load_settings_or_default,
    set_config_value,
)
from modgate.core.models import ProbeResult, RateLimitSettings

app = typer.Typer(
    name="modgate",
    help="Rate-limit aware access to the Modrinth API",
    no_args_is_help=True,
)

# Config subcommand group
config_app = typer.Typer(help="Manage configuration settings.")
app.add_typer(config_app, name="config")

console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"modgate {__version__}")
        raise typer.Exit()


def setup_logging(level: int) -> None:
    """Send modgate log records, including rate-limit progress, to the console."""
    package_logger = logging.getLogger("modgate")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    package_logger.addHandler(
        RichHandler(console=console, show_path=False, show_time=False)
    )
    package_logger.setLevel(level)
    package_logger.propagate = False


@app.callback()
def callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show every request attempt."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Hide rate-limit progress lines."),
    ] = False,
) -> None:
    """Rate-limit aware access to the Modrinth API."""
    if verbose:
        setup_logging(logging.DEBUG)
    elif quiet:
        setup_logging(logging.ERROR)
    else:
        setup_logging(logging.WARNING)


def _load_settings() -> RateLimitSettings:
    try:
        return load_settings_or_default(get_default_config_path())
    except ConfigValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None


async def _probe_projects(
    slugs: list[str], settings: RateLimitSettings
) -> list[ProbeResult]:
    """Probe projects concurrently through one shared rate-limited client."""
    async with ModrinthClient(settings=settings) as client:
        return await client.probe_all(slugs)


def _render_results(results: list[ProbeResult]) -> Table:
    table = Table(title="Probe results")
    table.add_column("Slug", style="cyan")
    table.add_column("Status", justify="right")
    table.add_column("Attempts", justify="right")
    table.add_column("Elapsed", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Error", style="red")

    for result in results:
        status = str(result.status_code) if result.status_code is not None else "-"
        status_style = "green" if result.success else "red"
        table.add_row(
            result.slug,
            f"[{status_style}]{status}[/{status_style}]",
            str(result.attempts),
            f"{result.elapsed:.2f}s",
            str(result.remaining) if result.remaining is not None else "-",
            result.error or "",
        )
    return table


@app.command()
def probe(
    slugs: Annotated[
        list[str],
        typer.Argument(help="Project slugs to fetch (e.g., sodium lithium)"),
    ],
    repeat: Annotated[
        int,
        typer.Option("--repeat", "-n", min=1, help="Fetch each slug N times."),
    ] = 1,
    max_retries: Annotated[
        int | None,
        typer.Option("--max-retries", min=0, help="Override ratelimit.max_retries."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output in JSON format"),
    ] = False,
) -> None:
    """Fetch projects concurrently to exercise rate-limit handling.

    Every request goes through one shared client; rate limits are absorbed
    and reported as they happen.

    Example:
        modgate probe sodium lithium iris --repeat 20
    """
    settings = _load_settings()
    if max_retries is not None:
        settings = settings.model_copy(update={"max_retries": max_retries})

    targets = [slug for _ in range(repeat) for slug in slugs]
    results = asyncio.run(_probe_projects(targets, settings))

    if json_output:
        console.print(
            json.dumps([r.model_dump() for r in results], indent=2, ensure_ascii=False)
        )
    else:
        console.print(_render_results(results))

    rate_limited = sum(1 for r in results if r.rate_limited)
    failed = [r for r in results if not r.success]
    exhausted = [r for r in failed if r.status_code == 429]

    if not json_output:
        console.print(
            f"\nSucceeded: {len(results) - len(failed)}  "
            f"Failed: {len(failed)}  "
            f"Rate limits encountered and handled: {rate_limited - len(exhausted)}"
        )

    if exhausted:
        console.print(
            "[red]Error:[/red] Rate limit retries exhausted. "
            "Please try again later."
        )
    if failed:
        raise typer.Exit(code=1)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing configuration file.",
        ),
    ] = False,
) -> None:
    """Create config.toml with default rate limit settings.

    The file is created in XDG Base Directory compliant location:
    - $XDG_CONFIG_HOME/modgate/ (if XDG_CONFIG_HOME is set)
    - ~/.config/modgate/ (default)
    """
    try:
        config_path = generate_config(path=get_default_config_path(), force=force)
    except FileExistsError:
        console.print(
            "[red]Error:[/red] config.toml already exists. Use --force to overwrite."
        )
        raise typer.Exit(code=1) from None

    console.print(f"✓ Created {config_path}", style="green")


@config_app.command()
def path() -> None:
    """Show the path to the config file.

    Example:
        modgate config path
    """
    console.print(str(get_default_config_path()))


@config_app.command()
def get(key: Annotated[str, typer.Argument(help="Config key in dot notation")]) -> None:
    """Get a config value by key.

    Example:
        modgate config get ratelimit.max_retries
    """
    if key not in CONFIG_KEY_MAP:
        console.print(f"[red]Error:[/red] Unknown config key: '{key}'")
        raise typer.Exit(code=1)

    try:
        value = get_config_value(key, get_default_config_path())
    except FileNotFoundError:
        console.print(
            "[red]Error:[/red] config.toml not found. Run 'modgate init' first."
        )
        raise typer.Exit(code=1) from None
    except ConfigValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    # Unset keys print nothing
    if value is not None:
        console.print(str(value))


@config_app.command(name="list")
def config_list(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output in JSON format"),
    ] = False,
) -> None:
    """List all configuration settings.

    Example:
        modgate config list
        modgate config list --json
    """
    config_path = get_default_config_path()
    try:
        config_values = get_all_config_values(config_path)
    except FileNotFoundError:
        console.print(
            "[red]Error:[/red] config.toml not found. Run 'modgate init' first."
        )
        raise typer.Exit(code=1) from None
    except ConfigValidationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    if json_output:
        console.print(json.dumps(config_values, indent=2, ensure_ascii=False))
        return

    console.print(f"Configuration ({config_path}):")

    # Group by section
    sections: dict[str, list[tuple[str, object]]] = {}
    for key, value in config_values.items():
        section, field = key.split(".", 1)
        sections.setdefault(section, []).append((field, value))

    for section_name in sorted(sections):
        console.print(f"\n\\[{section_name}]")
        for field, value in sections[section_name]:
            value_str = str(value) if value is not None else "(not set)"
            console.print(f"  {field:<20} = {value_str}")


@config_app.command(name="set")
def set_value(
    key: Annotated[str, typer.Argument(help="Config key in dot notation")],
    value: Annotated[str, typer.Argument(help="Value to set")],
) -> None:
    """Set a config value by key.

    Example:
        modgate config set ratelimit.max_retries 20
        modgate config set ratelimit.max_delay 30
    """
    try:
        set_config_value(key, value, get_default_config_path())
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None
    except FileNotFoundError:
        console.print(
            "[red]Error:[/red] config.toml not found. Run 'modgate init' first."
        )
        raise typer.Exit(code=1) from None

    console.print(f"✓ Set {key} = {value}", style="green")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
