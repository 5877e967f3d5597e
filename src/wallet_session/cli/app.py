"""CLI for wallet-session - connect a wallet session from the terminal."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from wallet_session.config import (
    WalletSessionConfig,
    build_provider,
    get_config_path,
    get_keystore_dir,
    load_config,
    save_config,
)

app = typer.Typer(
    name="wallet-session",
    help="Connect to an EVM wallet and follow its account and network changes.",
    no_args_is_help=True,
)
console = Console()

_base_dir: Path | None = None
_verbose: bool = False


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"wallet-session {version('wallet-session')}")
        raise typer.Exit()


@app.callback()
def main(
    base: Path = typer.Option(
        None,
        "--dir",
        "-d",
        help="Directory containing .wallet-session/ (default: current directory)",
        envvar="WALLET_SESSION_DIR",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Connect to an EVM wallet and follow its account and network changes."""
    global _base_dir, _verbose
    _base_dir = base
    _verbose = verbose


def _load() -> WalletSessionConfig:
    config = load_config(get_config_path(_base_dir))
    level = "DEBUG" if _verbose else config.logging.level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return config


# ------------------------------------------------------------------
# init / chains
# ------------------------------------------------------------------


@app.command()
def init(
    chain: str = typer.Option("ethereum", "--chain", "-c", help="Default chain"),
    rpc_url: str = typer.Option(None, "--rpc-url", help="Use a JSON-RPC wallet endpoint instead of the keystore"),
):
    """Write a default configuration file."""
    path = get_config_path(_base_dir)
    if path.exists():
        console.print(f"[yellow]Config already exists at {path}[/yellow]")
        raise typer.Exit(1)

    config = WalletSessionConfig(default_chain=chain)
    if chain not in config.chains():
        console.print(f"[red]Unknown chain '{chain}'.[/red] Run 'wallet-session chains' to list them.")
        raise typer.Exit(1)
    if rpc_url:
        config.provider = "rpc"
        config.rpc_url = rpc_url
    save_config(config, path)
    console.print(f"[green]Wrote {path}[/green]")


@app.command()
def chains():
    """List the networks a session can switch between."""
    config = _load()
    table = Table(title="Networks")
    table.add_column("Name", style="cyan")
    table.add_column("Chain ID", justify="right")
    table.add_column("Hex")
    table.add_column("Symbol")
    table.add_column("Explorer", style="dim")
    for name, chain in config.chains().items():
        marker = " *" if name == config.default_chain else ""
        table.add_row(
            f"{name}{marker}",
            str(chain.chain_id),
            chain.hex_id,
            chain.native_symbol,
            chain.explorer_url,
        )
    console.print(table)


# ------------------------------------------------------------------
# keystore sub-commands
# ------------------------------------------------------------------

keystore_app = typer.Typer(
    name="keystore",
    help="Manage the local encrypted keystore.",
    no_args_is_help=True,
)
app.add_typer(keystore_app, name="keystore")


@keystore_app.command("create")
def keystore_create():
    """Generate a new Ethereum account with an encrypted keystore."""
    from wallet_session.wallet.keystore import Keystore

    config = _load()
    keystore = Keystore(get_keystore_dir(config, _base_dir))

    password = console.input("[bold]Set keystore password: [/bold]", password=True)
    confirm = console.input("[bold]Confirm password: [/bold]", password=True)
    if password != confirm:
        console.print("[red]Passwords do not match.[/red]")
        raise typer.Exit(1)

    try:
        addr = keystore.create(password)
    except FileExistsError as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(1)

    console.print(Panel(
        f"[bold green]Keystore created![/bold green]\n\n"
        f"Address: [cyan]{addr}[/cyan]\n\n"
        f"[dim]The key is encrypted with your password.[/dim]",
        title="Keystore",
    ))


@keystore_app.command("address")
def keystore_address():
    """Show the keystore address."""
    from wallet_session.wallet.keystore import Keystore

    config = _load()
    addr = Keystore(get_keystore_dir(config, _base_dir)).address
    if addr is None:
        console.print("[yellow]No keystore found.[/yellow] Run 'wallet-session keystore create' first.")
        raise typer.Exit(1)
    console.print(f"[cyan]{addr}[/cyan]")


# ------------------------------------------------------------------
# connect
# ------------------------------------------------------------------


def _state_table(snapshot) -> Table:
    table = Table(title="Wallet Session", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("State", snapshot.connection_state.value)
    table.add_row("Account", snapshot.account or "-")
    table.add_row("Chain ID", snapshot.chain_id or "-")
    table.add_row("Last error", f"[red]{snapshot.last_error}[/red]" if snapshot.last_error else "-")
    return table


@app.command()
def connect(
    switch: str = typer.Option(None, "--switch", "-s", help="Network name or chain id to switch to after connecting"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Approve account access without prompting"),
):
    """Connect a session to the configured wallet and print its state."""
    from wallet_session.session import UnknownNetwork, WalletError, WalletSession
    from wallet_session.session.state import SessionChange

    config = _load()

    async def _approve(address: str) -> bool:
        if yes:
            return True
        answer = console.input(f"Allow this session to see [cyan]{address}[/cyan]? [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    async def _on_change(change: SessionChange) -> None:
        if change.invalidates_bindings:
            console.print(
                f"[yellow]Network changed to {change.current.chain_id}; "
                f"network-bound state must be reloaded.[/yellow]"
            )

    async def _connect():
        provider = build_provider(config, _base_dir, approve=_approve)
        async with WalletSession(provider) as session:
            session.watch(_on_change)
            snapshot = await session.connect()
            if switch and snapshot.is_connected:
                target = switch
                if switch in config.chains():
                    target = str(config.chains()[switch].chain_id)
                try:
                    await session.switch_network(target)
                except UnknownNetwork as e:
                    console.print(f"[yellow]{e}[/yellow] Add it under 'networks' in the config first.")
                except WalletError as e:
                    console.print(f"[red]Switch failed:[/red] {e}")
                await session.drain()
            return session.snapshot

    try:
        snapshot = asyncio.run(_connect())
    except (KeyError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(_state_table(snapshot))
    if not snapshot.is_connected:
        raise typer.Exit(1)
