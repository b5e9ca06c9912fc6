import asyncio
from unittest.mock import MagicMock

from main import ChillTUIApp, build_services, parse_args
from config import Config
from controller import FILTER_ROWS, FilterGroup
from models import Panel, ResultEntry, SearchFailure, SortMode, TransferReport


def make_results(count):
    return [ResultEntry(f"Result {i}", "YTS", 1024, 20, 1, f"magnet:?xt=urn:btih:{i}") for i in range(count)]


def run(scenario):
    asyncio.run(scenario())


def test_search_select_and_send():
    search_service = MagicMock()
    search_service.search.return_value = make_results(3)
    transfer_service = MagicMock()
    transfer_service.send.return_value = TransferReport(sent=["magnet:?xt=urn:btih:0", "magnet:?xt=urn:btih:1"])

    async def scenario():
        app = ChillTUIApp(search_service, transfer_service)
        async with app.run_test() as pilot:
            await pilot.press("d", "u", "n", "e")
            await pilot.pause()
            assert app.controller.query == "dune"

            await pilot.press("enter")
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert search_service.search.call_args.args[0] == "dune"
            assert app.controller.focused_panel is Panel.RESULTS
            assert len(app.app_state.results) == 3

            await pilot.press("space", "down", "space", "enter")
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()
            transfer_service.send.assert_called_once_with(["magnet:?xt=urn:btih:0", "magnet:?xt=urn:btih:1"])
            assert app.controller.selection == set()
            assert app.controller.query == ""
            assert app.controller.focused_panel is Panel.SEARCH

    run(scenario)


def test_toggling_indexer_reruns_search():
    search_service = MagicMock()
    search_service.search.return_value = make_results(2)
    eztv_row = FILTER_ROWS.index((FilterGroup.INDEXER, "EZTV"))

    async def scenario():
        app = ChillTUIApp(search_service, None)
        async with app.run_test() as pilot:
            await pilot.press("d", "u", "n", "e", "enter")
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert search_service.search.call_count == 1

            await pilot.press("left", *(["down"] * eztv_row))
            await pilot.pause()
            assert app.controller.focused_panel is Panel.FILTERS
            assert search_service.search.call_count == 1

            await pilot.press("space")
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert search_service.search.call_count == 2
            query, filters = search_service.search.call_args.args
            assert query == "dune"
            assert filters.indexers == ("EZTV",)

    run(scenario)


def test_sort_change_does_not_rerun_search():
    search_service = MagicMock()
    search_service.search.return_value = make_results(2)

    async def scenario():
        app = ChillTUIApp(search_service, None)
        async with app.run_test() as pilot:
            await pilot.press("d", "u", "n", "e", "enter")
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()

            await pilot.press("left", "down", "space")
            await pilot.pause()
            await app.workers.wait_for_complete()
            assert app.controller.filters.sort_by is SortMode.SIZE
            assert search_service.search.call_count == 1

    run(scenario)


def test_search_failure_leaves_state_unchanged():
    search_service = MagicMock()
    search_service.search.side_effect = SearchFailure("Search failed: HTTP 401")

    async def scenario():
        app = ChillTUIApp(search_service, None)
        async with app.run_test() as pilot:
            await pilot.press("x", "enter")
            await pilot.pause()
            await app.workers.wait_for_complete()
            await pilot.pause()
            assert app.controller.results == ()
            assert app.controller.query == "x"
            assert app.searching is False

    run(scenario)


def test_empty_query_does_not_search():
    search_service = MagicMock()

    async def scenario():
        app = ChillTUIApp(search_service, None)
        async with app.run_test() as pilot:
            await pilot.press("enter")
            await pilot.pause()
            search_service.search.assert_not_called()

    run(scenario)


def test_build_services_depends_on_credentials():
    assert build_services(Config()) == (None, None)
    search, transfer = build_services(Config(chill_api_key="k" * 12, putio_oauth_token="t" * 24,
                                             putio_folder_id=4))
    assert search.client.putio_token == "t" * 24
    assert transfer.folder_id == 4


def test_parse_args_debug_alias():
    assert parse_args(["--logging"]).debug is True
    assert parse_args([]).setup is False
