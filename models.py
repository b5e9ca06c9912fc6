# models.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

INDEXER_ALL = "all"
INDEXERS: Tuple[str, ...] = (
    INDEXER_ALL, "1337x", "EZTV", "nyaa.si", "RUtracker", "TPB", "RARBG", "Uindex", "YTS",
)
# Display name -> name the search API expects. Unlisted names pass through.
INDEXER_API_NAMES: Dict[str, str] = {
    "TPB": "thepiratebay",
    "EZTV": "eztv",
    "RUtracker": "rutracker",
    "RARBG": "therarbg",
    "YTS": "yts",
}
MIN_SEED_OPTIONS: Tuple[int, ...] = (0, 5, 10, 100)


class Panel(Enum):
    SEARCH = "Search"
    FILTERS = "Filters"
    RESULTS = "Results"


class SortMode(Enum):
    SEEDERS = "Seeders"
    SIZE = "Size"
    NAME = "Name"


class NsfwPolicy(Enum):
    FILTERED = "Filter NSFW"
    ALLOWED = "Allow NSFW"


@dataclass(frozen=True)
class FilterSelection:
    """The user's current sort, indexer, seed and NSFW choices."""
    sort_by: SortMode = SortMode.SEEDERS
    indexers: Tuple[str, ...] = (INDEXER_ALL,)
    min_seeds: int = 10
    nsfw: NsfwPolicy = NsfwPolicy.FILTERED

    @property
    def filter_nsfw(self) -> bool:
        return self.nsfw is NsfwPolicy.FILTERED

    def api_indexers(self) -> List[str]:
        """Indexer names as sent to the search API; "all" expands to every concrete indexer."""
        names = INDEXERS[1:] if INDEXER_ALL in self.indexers else self.indexers
        return [INDEXER_API_NAMES.get(name, name) for name in names]


@dataclass(frozen=True)
class ResultEntry:
    """A single torrent candidate returned by the search API."""
    title: str
    indexer: str
    size: int
    seeders: int
    leechers: int
    link: str

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "ResultEntry":
        return cls(
            title=str(item.get("title", "N/A")),
            indexer=str(item.get("source", "N/A")),
            size=int(item.get("size") or 0),
            seeders=int(item.get("seeders") or 0),
            leechers=int(item.get("peers") or 0),
            link=str(item["link"]),
        )

    @property
    def size_str(self) -> str:
        kib = 1024.0
        mib = kib * 1024.0
        gib = mib * 1024.0
        if self.size >= gib:
            return f"{self.size / gib:.2f} GiB"
        if self.size >= mib:
            return f"{self.size / mib:.2f} MiB"
        if self.size >= kib:
            return f"{self.size / kib:.2f} KiB"
        return f"{self.size} B"


@dataclass(frozen=True)
class ControllerState:
    """A read-only snapshot of the controller, handed to the renderer."""
    focused_panel: Panel = Panel.SEARCH
    filters: FilterSelection = field(default_factory=FilterSelection)
    filter_cursor: int = 0
    results: Tuple[ResultEntry, ...] = ()
    selection: FrozenSet[int] = frozenset()
    highlight: Optional[int] = None
    query: str = ""
    cursor: int = 0

    @property
    def highlighted_result(self) -> Optional[ResultEntry]:
        if self.highlight is None:
            return None
        return self.results[self.highlight]


@dataclass
class TransferReport:
    """Outcome of forwarding links to remote storage, one entry per link."""
    sent: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class CollaboratorFailure(Exception):
    """A search or send request failed; the message is fit for the status line."""


class SearchFailure(CollaboratorFailure):
    pass


class TransferFailure(CollaboratorFailure):
    pass


class ConfigError(Exception):
    pass
