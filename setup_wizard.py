# setup_wizard.py
"""First-run setup: collects the Chill API key and Put.io token, then picks a folder."""
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Prompt
from rich.rule import Rule

from config import CONFIG_PATH, DEFAULT_FOLDER_NAME, Config
from models import CollaboratorFailure
from services import PutioClient

MIN_API_KEY_LENGTH = 10
MIN_TOKEN_LENGTH = 20


def _ask_secret(console: Console, prompt: str, min_length: int, label: str) -> str:
    while True:
        value = Prompt.ask(prompt, console=console).strip()
        if not value:
            console.print(f"[red]✗ {label} cannot be empty. Please try again.[/red]")
        elif len(value) < min_length:
            console.print(f"[red]✗ {label} seems too short. Please check and try again.[/red]")
        else:
            return value


def run_setup_wizard(config: Optional[Config] = None, console: Optional[Console] = None,
                     client_factory: Callable[[str], PutioClient] = PutioClient,
                     path: Path = CONFIG_PATH) -> Config:
    """Prompts for whatever the config is missing, saves it and returns it.

    Raises CollaboratorFailure if the Put.io folder cannot be found or created.
    """
    config = config or Config()
    console = console or Console()

    console.print(Rule("[bold]ChillTUI First-Time Setup[/bold]"))

    if not config.chill_api_key:
        console.print("\n[bold]Step 1: Chill.institute API Key[/bold]")
        console.print("Request an API key by emailing: chill-institute@proton.me")
        console.print("Or via X: x.com/chill_institute")
        config.chill_api_key = _ask_secret(console, "Enter your Chill API key", MIN_API_KEY_LENGTH, "API key")
        console.print("[green]✓ API key accepted[/green]")

    if not config.putio_oauth_token:
        console.print("\n[bold]Step 2: Put.io Authentication[/bold]")
        console.print("1. Go to: https://app.put.io/oauth")
        console.print("2. Click 'Create App' (any name, website and callback: http://localhost)")
        console.print("3. After saving, click the key icon next to your app")
        console.print("4. Copy the OAuth Token")
        while True:
            token = _ask_secret(console, "Enter your Put.io OAuth token", MIN_TOKEN_LENGTH, "OAuth token")
            try:
                username = client_factory(token).test_connection()
            except CollaboratorFailure as e:
                console.print(f"[red]✗ Failed to connect to Put.io: {e}[/red]")
                console.print("  Please check your token and try again.")
                continue
            config.putio_oauth_token = token
            console.print(f"[green]✓ Connected as: {username}[/green]")
            break

    if config.putio_folder_id is None:
        console.print("\n[bold]Step 3: Put.io Folder Setup[/bold]")
        console.print(f"  1. Use default folder: /{DEFAULT_FOLDER_NAME}/")
        console.print("  2. Create custom folder")
        choice = Prompt.ask("Choice", choices=["1", "2"], default="1", console=console)
        if choice == "2":
            config.putio_folder_name = Prompt.ask("Enter folder name", console=console).strip() or DEFAULT_FOLDER_NAME
        else:
            config.putio_folder_name = DEFAULT_FOLDER_NAME
        client = client_factory(config.putio_oauth_token)
        config.putio_folder_id = client.find_or_create_folder(config.putio_folder_name)
        console.print(f"[green]✓ Folder ready: /{config.putio_folder_name}/[/green]")

    config.save(path)
    console.print(Rule("[green]✓ Setup complete! Configuration saved.[/green]"))
    return config
