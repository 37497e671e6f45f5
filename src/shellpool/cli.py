"""CLI entry point for shellpool."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.table import Table

from shellpool.config import ShellPoolConfig
from shellpool.errors import ShellPoolError
from shellpool.facade import Shell
from shellpool.installer import install_executable
from shellpool.process.session import ShellKind

app = typer.Typer(
    name="shellpool",
    help="Run shell commands on pooled long-lived privileged and unprivileged shells.",
    no_args_is_help=True,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_config(config_file: str | None) -> ShellPoolConfig:
    try:
        return ShellPoolConfig.load(config_file)
    except ValueError as e:
        typer.echo(f"Error: Invalid configuration: {e}", err=True)
        raise typer.Exit(1)


def _load_shell(config_file: str | None, executable: str | None) -> Shell:
    config = _load_config(config_file)
    if executable:
        config.executable_path = executable
    try:
        return Shell.from_config(config)
    except ShellPoolError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def run(
    commands: list[str] = typer.Argument(help="Commands to run, one per argument."),
    pool: str = typer.Option(
        "auto",
        "--pool",
        "-p",
        help="Which pool to use: auto, privileged or unprivileged.",
    ),
    safe: bool = typer.Option(
        False, "--safe", "-s", help="Suppress failures and print nothing instead."
    ),
    executable: str | None = typer.Option(
        None,
        "--executable",
        "-e",
        help="Installed utility binary (default: from env/config).",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Run a batch of commands and print the output lines."""
    setup_logging(verbose)

    if pool not in ("auto", *ShellKind):
        typer.echo(f"Error: Unknown pool: {pool}", err=True)
        raise typer.Exit(2)

    shell = _load_shell(config_file, executable)
    target = shell if pool == "auto" else shell.pool(pool)
    try:
        if safe:
            lines = target.execute_safe(*commands) or []
        else:
            try:
                lines = target.execute(*commands)
            except ShellPoolError as e:
                typer.echo(str(e), err=True)
                raise typer.Exit(1)
        for line in lines:
            typer.echo(line)
    finally:
        shell.reset()


@app.command()
def check(
    executable: str | None = typer.Option(
        None,
        "--executable",
        "-e",
        help="Installed utility binary (default: from env/config).",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Show whether each pool can run commands."""
    setup_logging(verbose)
    shell = _load_shell(config_file, executable)

    table = Table(title=f"shellpool ({shell.context.executable_path})")
    table.add_column("Pool")
    table.add_column("Shell")
    table.add_column("Available")
    try:
        for kind in ShellKind:
            target = shell.pool(kind)
            available = target.is_available()
            program = (
                shell.config.privileged_shell
                if kind is ShellKind.PRIVILEGED
                else shell.config.unprivileged_shell
            )
            table.add_row(
                kind.value,
                program,
                "[green]yes[/green]" if available else "[red]no[/red]",
            )
    finally:
        shell.reset()
    console.print(table)


@app.command()
def install(
    asset: str = typer.Argument(help="Bundled utility binary to install."),
    install_dir: str | None = typer.Option(
        None, "--dir", "-d", help="Install directory (default: from env/config)."
    ),
    name: str | None = typer.Option(
        None, "--name", "-n", help="Installed file name (default: from env/config)."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Install the utility binary and print its path."""
    setup_logging(verbose)
    config = _load_config(config_file)
    try:
        path = install_executable(
            asset,
            install_dir or config.install_dir,
            name or config.executable_name,
        )
    except ShellPoolError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(path)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
