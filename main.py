# main.py
import argparse
import asyncio
import logging
import sys
from typing import List, Optional

try:
    import pyperclip
except ImportError:
    pyperclip = None

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.reactive import reactive
from textual.widgets import Footer, Header

from config import CONFIG_PATH, LOG_DIR, Config
from controller import (FocusController, KeyPress, Quit, SendSelection,
                        TriggerSearch)
from models import CollaboratorFailure, ConfigError, ControllerState
from services import ChillClient, PutioClient, SearchService, TransferService
from ui import (DetailsPane, FilterPanel, LogPane, ResultsDisplay, SearchBar,
                Workbench)

__version__ = "0.1.0"

log = logging.getLogger(__name__)


class ChillTUIApp(App):
    TITLE = "ChillTUI"
    SUB_TITLE = "chill.institute from the terminal"
    BINDINGS = [
        Binding("ctrl+y", "copy_link", "Copy Link", priority=True),
        Binding("ctrl+t", "toggle_dark", "Toggle dark mode", priority=True),
    ]
    CSS = """
    #app-grid { height: 1fr; }
    #left-pane { width: 26; }
    #right-pane { width: 1fr; }
    SearchBar, FilterPanel, ResultsDisplay, DetailsPane { border: round $panel; }
    SearchBar { height: 3; padding: 0 1; }
    FilterPanel { height: 1fr; padding: 0 1; }
    ResultsDisplay { height: 2fr; }
    DetailsPane { height: 1fr; }
    .active { border: round $accent; }
    LogPane { height: 6; border: round $panel; }
    """

    app_state = reactive(ControllerState(), always_update=True, init=False)

    def __init__(self, search_service: Optional[SearchService], transfer_service: Optional[TransferService],
                 controller: Optional[FocusController] = None):
        super().__init__()
        self.search_service = search_service
        self.transfer_service = transfer_service
        self.controller = controller or FocusController()
        self.searching = False
        self.sending = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="main-container"):
            with Workbench(id="app-grid"):
                with Vertical(id="left-pane"):
                    yield FilterPanel(id="filters")
                with Vertical(id="right-pane"):
                    yield SearchBar(id="search-bar")
                    yield ResultsDisplay(id="results-table")
                    yield DetailsPane(id="details-pane")
            yield LogPane(id="log", wrap=True, highlight=True, markup=True)
        yield Footer()

    def on_mount(self) -> None:
        log_pane = self.query_one(LogPane)
        self.query_one(Workbench).focus()
        if self.search_service is None:
            log_pane.add_message("[yellow]⚠️ Chill API key not configured. Run with --setup.[/yellow]")
        if self.transfer_service is None:
            log_pane.add_message("[yellow]⚠️ Put.io not configured. Run with --setup.[/yellow]")
        if not pyperclip:
            log_pane.add_message("[yellow]⚠️ 'pyperclip' not installed, copying links is disabled.[/yellow]")
        log_pane.add_message("Ready. Type to search, Enter to search or send, Tab to switch panels, Esc×2 to quit.")
        self.app_state = self.controller.state

    def watch_app_state(self, old_state: ControllerState, new_state: ControllerState) -> None:
        results_table = self.query_one(ResultsDisplay)
        if old_state.results != new_state.results:
            results_table.update_results(new_state.results)
        results_table.update_marks(new_state, old_state.selection)
        self.query_one(SearchBar).update_state(new_state)
        self.query_one(FilterPanel).update_state(new_state)
        self.query_one(DetailsPane).update_details(new_state.highlighted_result)

    def on_workbench_key_pressed(self, message: Workbench.KeyPressed) -> None:
        indexers = self.controller.filters.indexers
        action = self.controller.handle_key(KeyPress.from_textual(message.key, message.character))
        if action is None:
            return
        if isinstance(action, Quit):
            self.exit()
            return
        if isinstance(action, TriggerSearch):
            self.request_search(action)
        elif isinstance(action, SendSelection):
            self.request_send(action)
        elif self.controller.filters.indexers != indexers and self.controller.results and self.controller.query:
            # Indexer changes refetch; sort and seed changes apply on the next search.
            self.request_search(TriggerSearch(self.controller.query, self.controller.filters))
        self.app_state = self.controller.state

    def action_copy_link(self) -> None:
        log_pane = self.query_one(LogPane)
        if not pyperclip:
            log_pane.add_message("[red]❌ 'pyperclip' not installed.[/red]")
            return
        result = self.app_state.highlighted_result
        if result:
            pyperclip.copy(result.link)
            log_pane.add_message(f"📋 Copied link for '[b]{result.title}[/b]'.")
        else:
            log_pane.add_message("[yellow]⚠️ No torrent highlighted.[/yellow]")

    def action_toggle_dark(self) -> None:
        self.theme = "textual-light" if self.theme == "textual-dark" else "textual-dark"

    def request_search(self, action: TriggerSearch) -> None:
        log_pane = self.query_one(LogPane)
        query = action.query.strip()
        if not query:
            log_pane.add_message("[yellow]⚠️ Type something to search for first.[/yellow]")
            return
        if self.search_service is None:
            log_pane.add_message("[red]❌ Chill API key not configured.[/red]")
            return
        if self.searching:
            log_pane.add_message("[yellow]⏳ A search is already running.[/yellow]")
            return
        self.searching = True
        log_pane.add_message(f"🔎 Searching for '{query}'...")
        self.run_worker(self.perform_search(query, action), group="search_worker")

    def request_send(self, action: SendSelection) -> None:
        log_pane = self.query_one(LogPane)
        if self.transfer_service is None:
            log_pane.add_message("[red]❌ Put.io not configured.[/red]")
            return
        if self.sending:
            log_pane.add_message("[yellow]⏳ Still sending the previous selection.[/yellow]")
            return
        entries = [self.controller.results[i] for i in action.indices]
        self.sending = True
        if len(entries) == 1:
            log_pane.add_message(f"📤 Sending '[b]{entries[0].title}[/b]' to Put.io...")
        else:
            log_pane.add_message(f"📤 Sending {len(entries)} files to Put.io...")
        self.run_worker(self.perform_send([e.link for e in entries]), group="send_worker")

    async def perform_search(self, query: str, action: TriggerSearch) -> None:
        log_pane = self.query_one(LogPane)
        try:
            results = await asyncio.to_thread(self.search_service.search, query, action.filters)
        except CollaboratorFailure as e:
            log.debug("Search failed: %s", e)
            log_pane.add_message(f"[red]❌ Search error: {e}[/red]")
            return
        finally:
            self.searching = False

        self.controller.apply_search_result(results)
        self.app_state = self.controller.state
        if not results:
            log_pane.add_message(f"🤷 No torrents found for '{query}'.")
        else:
            log_pane.add_message(f"[green]✅ Found {len(results)} results.[/green]")

    async def perform_send(self, links: List[str]) -> None:
        log_pane = self.query_one(LogPane)
        try:
            report = await asyncio.to_thread(self.transfer_service.send, links)
        except CollaboratorFailure as e:
            log_pane.add_message(f"[red]❌ Put.io error: {e}[/red]")
            return
        finally:
            self.sending = False

        for link, error in report.failed:
            log_pane.add_message(f"[red]❌ {error}[/red]")
        if report.ok:
            self.controller.acknowledge_send()
            self.app_state = self.controller.state
            noun = "file" if len(report.sent) == 1 else "files"
            log_pane.add_message(f"[green]✅ Sent {len(report.sent)} {noun} to Put.io![/green]")
        else:
            log_pane.add_message(f"[yellow]⚠️ Sent {len(report.sent)} of {len(links)}, selection kept.[/yellow]")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="chilltui",
        description="Fast terminal UI for torrent search via chill.institute and Put.io integration.",
        epilog=f"Config stored at: {CONFIG_PATH}",
    )
    parser.add_argument("-v", "--version", action="version", version=f"chilltui v{__version__}")
    parser.add_argument("--setup", action="store_true", help="Run the setup wizard.")
    parser.add_argument("--debug", "--logging", dest="debug", action="store_true",
                        help=f"Write debug logs to {LOG_DIR / 'chilltui.log'}.")
    return parser.parse_args(argv)


def setup_logging(debug: bool) -> None:
    """Configures the root logger. The terminal belongs to the UI, so debug output goes to a file."""
    logger = logging.getLogger()
    if logger.hasHandlers():
        logger.handlers.clear()
    if not debug:
        logger.setLevel(logging.WARNING)
        logger.addHandler(logging.NullHandler())
        return

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(LOG_DIR / "chilltui.log", mode="w", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    logger.setLevel(logging.DEBUG)
    logger.addHandler(file_handler)
    logging.getLogger("urllib3").setLevel(logging.INFO)
    logging.info("--- ChillTUI debug logging started ---")


def build_services(config: Config):
    search_service = None
    transfer_service = None
    if config.chill_api_key:
        chill = ChillClient(config.chill_api_key, config.putio_oauth_token,
                            base_url=config.CHILL_BASE_URL, timeout=config.REQUEST_TIMEOUT)
        search_service = SearchService(chill)
    if config.putio_oauth_token:
        putio = PutioClient(config.putio_oauth_token, base_url=config.PUTIO_BASE_URL,
                            timeout=config.REQUEST_TIMEOUT)
        transfer_service = TransferService(putio, config.putio_folder_name, config.putio_folder_id)
    return search_service, transfer_service


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.debug)

    try:
        app_config = Config.load()
    except ConfigError as e:
        log.warning("%s Falling back to defaults.", e)
        app_config = Config()
    log.debug("Config loaded: folder=%s folder_id=%s", app_config.putio_folder_name, app_config.putio_folder_id)

    if app_config.needs_setup() or args.setup:
        from setup_wizard import run_setup_wizard
        try:
            app_config = run_setup_wizard(app_config)
        except (KeyboardInterrupt, EOFError):
            print("\nSetup cancelled.")
            return 1
        except CollaboratorFailure as e:
            print(f"✗ Setup failed: {e}")
            return 1

    search_service, transfer_service = build_services(app_config)
    app = ChillTUIApp(search_service, transfer_service)
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
