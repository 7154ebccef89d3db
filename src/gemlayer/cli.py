"""CLI entry point for the gemlayer Gemini client.

Provides commands:
  - generate: Run a prompt against a Gemini model
  - upload: Upload a file to the File API, wait until ACTIVE, optionally prompt with it
  - delete: Delete a File API object by resource name
  - config: Manage the API key stored in the system keyring
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import Annotated

import typer
from keyring.errors import KeyringError
from rich.console import Console
from rich.panel import Panel

from gemlayer.config import (
    ENV_VAR,
    SERVICE_NAME,
    find_api_key,
    forget_api_key,
    load_client_config,
    mask_api_key,
    store_api_key,
)
from gemlayer.constants import DEFAULT_MODEL
from gemlayer.errors import ConfigError, FileDeleteError, GemlayerError
from gemlayer.models import GenerateOptions, UploadedFile

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="gemlayer - resilient Gemini generation and File API uploads",
    rich_markup_mode="rich",
)
console = Console()

config_app = typer.Typer(help="Manage configuration (API keys)")
app.add_typer(config_app, name="config")


def _enable_debug_log() -> None:
    debug_dir = Path.home() / ".gemlayer"
    debug_dir.mkdir(exist_ok=True)
    fh = logging.FileHandler(debug_dir / "debug.log")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    pkg_logger = logging.getLogger("gemlayer")
    pkg_logger.setLevel(logging.DEBUG)
    pkg_logger.addHandler(fh)


def _build_client(config_path: Path | None):
    from gemlayer.client import GeminiClient

    config = load_client_config(config_path)
    try:
        return GeminiClient(config)
    except ConfigError as e:
        console.print(
            f"[red]Configuration error:[/red] {e}\n"
            "Set a key with: [bold]gemlayer config set-api-key YOUR_KEY[/bold]"
        )
        raise typer.Exit(code=1)


def _save_images(images: list[bytes], output_dir: Path) -> list[Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for i, data in enumerate(images, start=1):
        path = output_dir / f"image_{i:02d}.png"
        path.write_bytes(data)
        paths.append(path)
    return paths


async def _delete_quietly(client, uploaded: UploadedFile) -> None:
    """Delete an uploaded file, reporting rather than raising a failure."""
    name = uploaded.name
    try:
        await client.delete_file(uploaded)
    except FileDeleteError as e:
        logger.warning("Could not delete %s: %s", name, e)
        console.print(
            f"[yellow]Warning:[/yellow] {e}\n"
            f"Remove it with: [bold]gemlayer delete {name}[/bold]"
        )
    else:
        console.print(f"[dim]Deleted {name}[/dim]")


@app.command()
def generate(
    prompt: Annotated[str, typer.Argument(help="Prompt text")],
    model: Annotated[
        str, typer.Option("--model", "-m", help="Gemini model name")
    ] = DEFAULT_MODEL,
    system: Annotated[
        str, typer.Option("--system", help="System instruction")
    ] = "",
    temperature: Annotated[
        float | None, typer.Option("--temperature", "-t", help="Sampling temperature")
    ] = None,
    seed: Annotated[
        int | None, typer.Option("--seed", help="Random seed (dropped if outside int32)")
    ] = None,
    aspect_ratio: Annotated[
        str, typer.Option("--aspect-ratio", help="Aspect ratio for image models, e.g. 16:9")
    ] = "",
    save_images: Annotated[
        Path | None, typer.Option("--save-images", help="Directory to write returned images to")
    ] = None,
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to client_config.json")
    ] = None,
    debug: Annotated[
        bool, typer.Option("--debug", help="Write debug log to ~/.gemlayer/debug.log")
    ] = False,
) -> None:
    """Generate content from a text prompt."""
    from google.genai import types

    if not prompt.strip():
        console.print("[red]Error:[/red] prompt is empty")
        raise typer.Exit(code=1)

    if debug:
        _enable_debug_log()

    client = _build_client(config_path)
    options = GenerateOptions(
        system_prompt=system,
        temperature=temperature,
        seed=seed,
        aspect_ratio=aspect_ratio,
    )

    async def _run():
        try:
            return await client.generate_with_parts(
                model, [types.Part.from_text(text=prompt)], options
            )
        finally:
            await client.close()

    try:
        result = asyncio.run(_run())
    except GemlayerError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if result.text:
        console.print(Panel(result.text, title=model))
    if result.images:
        if save_images is not None:
            for path in _save_images(result.images, save_images):
                console.print(f"[green]✓[/green] Saved {path}")
        else:
            console.print(
                f"[dim]{len(result.images)} image(s) returned; "
                "use --save-images DIR to keep them[/dim]"
            )


@app.command()
def upload(
    path: Annotated[
        Path, typer.Argument(help="File to upload", exists=True, dir_okay=False, readable=True)
    ],
    mime_type: Annotated[
        str | None, typer.Option("--mime-type", help="MIME type (guessed from extension if omitted)")
    ] = None,
    display_name: Annotated[
        str | None, typer.Option("--display-name", help="Display name (defaults to file name)")
    ] = None,
    prompt: Annotated[
        str | None, typer.Option("--prompt", "-p", help="Prompt to run against the uploaded file")
    ] = None,
    model: Annotated[
        str, typer.Option("--model", "-m", help="Gemini model for --prompt")
    ] = DEFAULT_MODEL,
    keep: Annotated[
        bool, typer.Option("--keep/--no-keep", help="Keep the uploaded file after the command")
    ] = False,
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to client_config.json")
    ] = None,
    debug: Annotated[
        bool, typer.Option("--debug", help="Write debug log to ~/.gemlayer/debug.log")
    ] = False,
) -> None:
    """Upload a file to the Gemini File API and wait until it is ACTIVE."""
    from google.genai import types

    if debug:
        _enable_debug_log()

    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(path.name)
    if not mime_type:
        console.print("[red]Error:[/red] could not guess MIME type; pass --mime-type")
        raise typer.Exit(code=1)

    client = _build_client(config_path)
    data = path.read_bytes()

    async def _run():
        uploaded = None
        try:
            with console.status(f"Uploading {path.name} ({len(data):,} bytes)..."):
                uploaded = await client.upload_file(
                    data, mime_type, display_name or path.name
                )
            console.print(f"[green]✓[/green] {uploaded.name} is ACTIVE")
            console.print(f"[dim]URI:[/dim] {uploaded.uri}")

            result = None
            if prompt:
                parts = [
                    types.Part.from_uri(file_uri=uploaded.uri, mime_type=mime_type),
                    types.Part.from_text(text=prompt),
                ]
                result = await client.generate_with_parts(model, parts)
            return uploaded, result
        finally:
            try:
                if uploaded is not None and not keep:
                    await _delete_quietly(client, uploaded)
            finally:
                await client.close()

    try:
        uploaded, result = asyncio.run(_run())
    except GemlayerError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if result is not None and result.text:
        console.print(Panel(result.text, title=model))
    if keep:
        console.print(
            f"[yellow]Kept[/yellow] {uploaded.name}; remove it with "
            f"[bold]gemlayer delete {uploaded.name}[/bold]"
        )


@app.command()
def delete(
    name: Annotated[str, typer.Argument(help="File API resource name, e.g. files/abc123")],
    config_path: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to client_config.json")
    ] = None,
) -> None:
    """Delete a File API object by resource name."""
    client = _build_client(config_path)

    async def _run() -> None:
        try:
            await client.delete_file(name)
        finally:
            await client.close()

    try:
        asyncio.run(_run())
    except GemlayerError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Deleted {name}")


@config_app.command("set-api-key")
def set_api_key(
    key: Annotated[str, typer.Argument(help="Gemini API key to save")],
) -> None:
    """Save the Gemini API key to the system keyring."""
    try:
        store_api_key(key)
    except (ConfigError, KeyringError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(
        f"[green]✓[/green] Saved {mask_api_key(key.strip())} to keyring '{SERVICE_NAME}'"
    )


@config_app.command("get-api-key")
def show_api_key() -> None:
    """Show which API key gemlayer will use, and where it comes from."""
    found = find_api_key()
    if found is None:
        console.print(
            f"[yellow]No API key in keyring '{SERVICE_NAME}' or ${ENV_VAR}.[/yellow]\n"
            "Save one with: [bold]gemlayer config set-api-key KEY[/bold]"
        )
        raise typer.Exit(code=1)

    source, key = found
    where = f"keyring '{SERVICE_NAME}'" if source == "keyring" else f"${ENV_VAR}"
    console.print(f"{mask_api_key(key)} [dim]from {where}[/dim]")


@config_app.command("remove-api-key")
def remove_api_key() -> None:
    """Remove the saved API key from the system keyring."""
    try:
        removed = forget_api_key()
    except KeyringError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    if removed:
        console.print(f"[green]✓[/green] Removed API key from keyring '{SERVICE_NAME}'")
    else:
        console.print(f"[yellow]Nothing to remove:[/yellow] keyring '{SERVICE_NAME}' is empty")


if __name__ == "__main__":
    app()
