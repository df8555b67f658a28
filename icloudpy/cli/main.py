"""iCloud CLI - Main commands."""
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..client import ICloudClient
from ..core.api import APIConfig, Device, ProxyConfig, SSLConfig
from ..core.exceptions import ICloudException

app = typer.Typer(
    name="icloud",
    help="Apple iCloud CLI",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

LOG_LEVELS = [logging.ERROR, logging.INFO, logging.DEBUG]


class State:
    username: Optional[str] = None
    password: Optional[str] = None
    config: Optional[APIConfig] = None


state = State()


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def configure_logging(verbose: int) -> None:
    """Map -v count to a log level: 0=ERROR, 1=INFO, 2+=DEBUG."""
    from .. import setup_logging

    level = LOG_LEVELS[min(max(verbose, 0), len(LOG_LEVELS) - 1)]
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="%y-%m-%d %H:%M:%S",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    setup_logging(level)


def choose_device(devices: List[Device]) -> Device:
    table = Table(title="Trusted devices")
    table.add_column("#", justify="right")
    table.add_column("Type", style="cyan")
    table.add_column("Phone")
    for index, device in enumerate(devices):
        table.add_row(str(index), device.device_type, device.phone_number or "-")
    console.print(table)
    index = typer.prompt("Send verification code to device", default=0, type=int)
    if not 0 <= index < len(devices):
        console.print(f"[red]No device #{index}[/red]")
        raise typer.Exit(1)
    return devices[index]


def prompt_code(message: str) -> str:
    return typer.prompt(message.rstrip(": "))


def build_config(proxy: Optional[str], insecure: bool) -> APIConfig:
    """API configuration for the global network options."""
    return APIConfig(
        proxy=ProxyConfig(url=proxy) if proxy else None,
        ssl=SSLConfig(verify=not insecure),
    )


@asynccontextmanager
async def open_client():
    """Authenticated client for the global username/password."""
    if not state.username:
        console.print("[red]Username was not supplied (use --username)[/red]")
        raise typer.Exit(1)

    async with ICloudClient(state.username, state.password, config=state.config) as client:
        if not state.password and not client.session.session_token:
            client.auth.password = typer.prompt(f"Password for {state.username}", hide_input=True)
        try:
            await client.start(code_prompt=prompt_code, device_chooser=choose_device)
        except ICloudException as e:
            console.print(f"[red]Login failed: {e}[/red]")
            raise typer.Exit(1)
        yield client


async def resolve(client: ICloudClient, path: str):
    drive = await client.drive()
    try:
        return await drive.get_path(path)
    except ICloudException as e:
        console.print(f"[red]{path}: {e}[/red]")
        raise typer.Exit(1)


@app.callback()
def callback(
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Apple ID to use"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Apple ID password to use"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Log more stuff"),
    proxy: Optional[str] = typer.Option(None, "--proxy", help="HTTP proxy URL for all requests"),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification"),
):
    """Apple iCloud Drive from the command line."""
    configure_logging(verbose)
    state.username = username
    state.password = password
    state.config = build_config(proxy, insecure)


@app.command()
def login():
    """Authenticate and save the session."""
    async def do_login():
        async with open_client() as client:
            console.print(f"[green]Logged in as {client.apple_id}[/green]")
            console.print(f"Session saved to: {client.data_dir}")

    run_async(do_login())


@app.command()
def devices():
    """List trusted devices of the account."""
    async def list_devices():
        async with open_client() as client:
            try:
                found = await client.trusted_devices()
            except ICloudException as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)
            table = Table()
            table.add_column("Type", style="cyan")
            table.add_column("Phone")
            table.add_column("Id", style="dim")
            for device in found:
                table.add_row(device.device_type, device.phone_number or "-", device.device_id)
            console.print(table)

    run_async(list_devices())


@app.command()
def ls(
    path: str = typer.Argument("/", help="Path to list"),
    long: bool = typer.Option(False, "-l", "--long", help="Long format with details"),
):
    """List files and folders."""
    async def list_files():
        async with open_client() as client:
            node = await resolve(client, path)
            if not node.is_folder:
                console.print(node.full_name)
                return
            children = await node.children()

            if long:
                table = Table()
                table.add_column("Type", style="cyan")
                table.add_column("Size", justify="right")
                table.add_column("Modified")
                table.add_column("Name")
                for child in children:
                    type_str = "D" if child.is_folder else "F"
                    size_str = "-" if child.is_folder else f"{child.file_size:,}"
                    modified = child.date_modified.strftime("%Y-%m-%d %H:%M") if child.date_modified else "-"
                    table.add_row(type_str, size_str, modified, child.full_name)
                console.print(table)
            else:
                for child in children:
                    if child.is_folder:
                        console.print(f"[blue]{child.full_name}/[/blue]")
                    else:
                        console.print(child.full_name)

    run_async(list_files())


@app.command()
def get(
    remote_path: str = typer.Argument(..., help="Remote file path"),
    output: Optional[Path] = typer.Argument(None, help="Local destination"),
):
    """Download a file."""
    async def do_download():
        async with open_client() as client:
            node = await resolve(client, remote_path)
            if node.is_folder:
                console.print("[red]Cannot download folder[/red]")
                raise typer.Exit(1)
            dest = output or Path(node.full_name)
            if dest.is_dir():
                dest = dest / node.full_name
            with console.status(f"Downloading {node.full_name}..."):
                await node.download(dest)
            console.print(f"[green]Downloaded:[/green] {dest}")

    run_async(do_download())


@app.command()
def put(
    local_path: Path = typer.Argument(..., help="Local file to upload"),
    dest: str = typer.Argument("/", help="Remote destination folder"),
):
    """Upload a file."""
    async def do_upload():
        async with open_client() as client:
            folder = await resolve(client, dest)
            if not folder.is_folder:
                console.print(f"[red]Destination is not a folder: {dest}[/red]")
                raise typer.Exit(1)
            with console.status(f"Uploading {local_path.name}..."):
                try:
                    result = await folder.upload(local_path)
                except (ICloudException, OSError, ValueError) as e:
                    console.print(f"[red]Upload failed: {e}[/red]")
                    raise typer.Exit(1)
            console.print(f"[green]Uploaded:[/green] {result.name}")
            console.print(f"Document: {result.document_id}")
            console.print(f"Size: {result.size:,} bytes")

    run_async(do_upload())


@app.command()
def rm(path: str = typer.Argument(..., help="Path to move to trash")):
    """Move a file or folder to trash."""
    async def do_rm():
        async with open_client() as client:
            node = await resolve(client, path)
            await node.delete()
            console.print(f"[green]Deleted:[/green] {node.full_name}")

    run_async(do_rm())


@app.command()
def mkdir(
    parent: str = typer.Argument(..., help="Parent folder path"),
    name: str = typer.Argument(..., help="New folder name"),
):
    """Create a folder."""
    async def do_mkdir():
        async with open_client() as client:
            node = await resolve(client, parent)
            await node.mkdir(name)
            console.print(f"[green]Created folder:[/green] {name}")

    run_async(do_mkdir())


@app.command()
def mv(
    path: str = typer.Argument(..., help="Path to rename"),
    new_name: str = typer.Argument(..., help="New name"),
):
    """Rename a file or folder."""
    async def do_mv():
        async with open_client() as client:
            node = await resolve(client, path)
            await node.rename(new_name)
            console.print(f"[green]Renamed:[/green] {node.full_name} -> {new_name}")

    run_async(do_mv())


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
