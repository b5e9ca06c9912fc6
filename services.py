# services.py
import logging
from typing import Any, Dict, Iterable, List, Optional

import requests

from models import (CollaboratorFailure, FilterSelection, ResultEntry, SearchFailure,
                    SortMode, TransferFailure, TransferReport)

log = logging.getLogger(__name__)

PUTIO_OAUTH_BASE = "https://app.put.io/v2/oauth2"
OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"


def _read_json(response: requests.Response, failure: type, what: str) -> Any:
    """Raises ``failure`` for non-2xx responses or bodies that are not JSON."""
    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        raise failure(f"{what} failed: HTTP {response.status_code}") from e
    try:
        return response.json()
    except ValueError as e:
        raise failure(f"{what} returned an unreadable response.") from e


class ChillClient:
    """A thin client for the chill.institute search endpoint."""
    def __init__(self, api_key: str, putio_token: Optional[str] = None,
                 base_url: str = "https://chill.institute/api/v3", timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.putio_token = putio_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def search(self, query: str, indexers: Optional[List[str]] = None, filter_nsfw: bool = True) -> List[ResultEntry]:
        params: Dict[str, str] = {"keyword": query}
        if indexers and "all" not in indexers:
            params["indexer"] = ",".join(indexers)
        params["filterNastyResults"] = "true" if filter_nsfw else "false"

        headers = {"Authorization": self.api_key}
        if self.putio_token:
            headers["X-Putio-Token"] = self.putio_token

        log.debug("GET %s/search params=%s", self.base_url, params)
        try:
            response = self.session.get(f"{self.base_url}/search", params=params,
                                        headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise SearchFailure(f"Search request failed: {e}") from e

        items = _read_json(response, SearchFailure, "Search")
        if not isinstance(items, list):
            raise SearchFailure("Search returned an unexpected payload.")
        results = []
        for item in items:
            try:
                results.append(ResultEntry.from_api(item))
            except (KeyError, TypeError, ValueError):
                log.debug("Skipping malformed search item: %r", item)
        return results


class PutioClient:
    """A thin client for the Put.io v2 API, authenticated with an OAuth token."""
    def __init__(self, token: str, base_url: str = "https://api.put.io/v2", timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["Authorization"] = f"Bearer {token}"

    def _request(self, method: str, path: str, what: str, **kwargs) -> Any:
        log.debug("%s %s%s", method, self.base_url, path)
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransferFailure(f"{what} failed: {e}") from e
        return _read_json(response, TransferFailure, what)

    def test_connection(self) -> str:
        """Returns the account's username."""
        data = self._request("GET", "/account/info", "Account lookup")
        try:
            return data["info"]["username"]
        except (KeyError, TypeError) as e:
            raise TransferFailure("Account lookup returned an unexpected payload.") from e

    def find_or_create_folder(self, folder_name: str) -> int:
        """Finds a folder by name in the root, creating it if it doesn't exist."""
        data = self._request("GET", "/files/list", "Folder listing", params={"parent_id": 0})
        for item in data.get("files", []):
            if item.get("name") == folder_name:
                return int(item["id"])

        data = self._request("POST", "/files/create-folder", "Folder creation",
                             data={"name": folder_name, "parent_id": "0"})
        try:
            return int(data["file"]["id"])
        except (KeyError, TypeError) as e:
            raise TransferFailure("Folder creation returned an unexpected payload.") from e

    def add_transfer(self, link: str, parent_id: int) -> int:
        data = self._request("POST", "/transfers/add", "Transfer",
                             data={"url": link, "save_parent_id": str(parent_id)})
        try:
            return int(data["transfer"]["id"])
        except (KeyError, TypeError) as e:
            raise TransferFailure("Transfer returned an unexpected payload.") from e


def oauth_url(client_id: str) -> str:
    """Authorization URL for Put.io's out-of-band OAuth flow."""
    return (f"{PUTIO_OAUTH_BASE}/authenticate?client_id={client_id}"
            f"&response_type=code&redirect_uri={OOB_REDIRECT_URI}")


def exchange_code(client_id: str, client_secret: str, code: str, timeout: float = 30.0) -> str:
    """Exchanges an OAuth authorization code for an access token."""
    try:
        response = requests.post(f"{PUTIO_OAUTH_BASE}/access_token", timeout=timeout, data={
            "client_id": client_id,
            "client_secret": client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": OOB_REDIRECT_URI,
        })
    except requests.RequestException as e:
        raise TransferFailure(f"Token exchange failed: {e}") from e
    data = _read_json(response, TransferFailure, "Token exchange")
    try:
        return data["access_token"]
    except (KeyError, TypeError) as e:
        raise TransferFailure("Token exchange returned no access token.") from e


class SearchService:
    """Runs searches and applies the seed threshold and sort order locally."""
    def __init__(self, client: ChillClient):
        self.client = client

    def search(self, query: str, filters: FilterSelection) -> List[ResultEntry]:
        results = self.client.search(query, filters.api_indexers(), filters.filter_nsfw)
        if filters.min_seeds > 0:
            results = [r for r in results if r.seeders >= filters.min_seeds]

        if filters.sort_by is SortMode.SEEDERS:
            results.sort(key=lambda r: r.seeders, reverse=True)
        elif filters.sort_by is SortMode.SIZE:
            results.sort(key=lambda r: r.size, reverse=True)
        else:
            results.sort(key=lambda r: r.title)
        log.debug("Search '%s' -> %d results after filtering", query, len(results))
        return results


class TransferService:
    """Forwards links to a Put.io folder, resolving the folder id on first use."""
    def __init__(self, client: PutioClient, folder_name: str, folder_id: Optional[int] = None):
        self.client = client
        self.folder_name = folder_name
        self.folder_id = folder_id

    def send(self, links: Iterable[str]) -> TransferReport:
        """Sends each link; a failed link is recorded and the rest still go out."""
        if self.folder_id is None:
            self.folder_id = self.client.find_or_create_folder(self.folder_name)
        report = TransferReport()
        for link in links:
            try:
                self.client.add_transfer(link, self.folder_id)
            except CollaboratorFailure as e:
                log.warning("Transfer failed for %s: %s", link, e)
                report.failed.append((link, str(e)))
            else:
                report.sent.append(link)
        return report
