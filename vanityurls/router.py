"""Routing: resolve a request path to a configured vanity route.

The route table is a flat tuple of entries sorted by path. A binary search
finds exact matches and one-level-deep children directly; anything else
falls back to a bounded longest-prefix scan over the entries that sort
before the query.
"""

import bisect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

_logger = logging.getLogger("vanityurls")


class VCSKind(str, Enum):
    """Version control systems understood by the go tool."""

    BZR = "bzr"
    GIT = "git"
    HG = "hg"
    SVN = "svn"


@dataclass(frozen=True)
class RouteEntry:
    """One configured mapping from a path prefix to a repository.

    ``path`` has its trailing slash stripped, so the root route is ``""``.
    """

    path: str
    repo_url: str
    vcs: VCSKind
    display: str = ""


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a request path."""

    entry: Optional[RouteEntry]
    subpath: str = ""

    @property
    def matched(self) -> bool:
        """Return True if a route was found."""
        return self.entry is not None

    def __iter__(self) -> Iterator:
        return iter((self.entry, self.subpath))


NO_MATCH = Resolution(entry=None, subpath="")


class RouteTable:
    """Immutable, path-sorted collection of route entries."""

    __slots__ = ("_entries", "_paths")

    def __init__(self, entries: Iterable[RouteEntry] = ()) -> None:
        ordered = tuple(sorted(entries, key=lambda e: e.path))
        self._entries: Tuple[RouteEntry, ...] = ordered
        self._paths: Tuple[str, ...] = tuple(e.path for e in ordered)

    @classmethod
    def build(cls, entries: Iterable[RouteEntry]) -> "RouteTable":
        """Build a table from already-normalized, validated entries.

        Entries are sorted by path; none are added or dropped. Callers
        are responsible for deduplicating paths beforehand.
        """
        table = cls(entries)
        _logger.debug("Built route table with %d routes", len(table))
        return table

    @property
    def entries(self) -> Tuple[RouteEntry, ...]:
        return self._entries

    @property
    def paths(self) -> Tuple[str, ...]:
        return self._paths

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RouteEntry]:
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RouteTable):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def resolve(self, path: str) -> Resolution:
        """Find the best route for a request path.

        Examples, given routes ``["", "/abc", "/abc/def", "/xyz"]``:

        * ``/abc`` matches ``/abc`` exactly with an empty subpath.
        * ``/abc/def/x`` matches ``/abc/def`` with subpath ``x``.
        * ``/def`` does not match; the root route only catches paths
          that sort directly after it.

        Args:
            path: The request path, e.g. ``/pkg/sub``.

        Returns:
            A Resolution; ``entry`` is None when nothing matches.
        """
        paths = self._paths
        i = bisect.bisect_left(paths, path)

        if i < len(paths) and paths[i] == path:
            return Resolution(self._entries[i], "")

        if i > 0 and path.startswith(paths[i - 1] + "/"):
            return Resolution(self._entries[i - 1], path[len(paths[i - 1]) + 1 :])

        # Nothing at or after i can be a prefix of path.
        best: Optional[RouteEntry] = None
        shortest = len(path)
        for idx in range(i):
            candidate = paths[idx]
            if len(candidate) >= len(path) or not path.startswith(candidate):
                continue
            remaining = len(path) - len(candidate)
            if remaining < shortest:
                shortest = remaining
                best = self._entries[idx]

        if best is None:
            return NO_MATCH

        subpath = path[len(best.path) :]
        if subpath.startswith("/"):
            subpath = subpath[1:]
        return Resolution(best, subpath)


class Resolver:
    """Read-only facade the HTTP layer uses to look up routes.

    Carries the host and Cache-Control policy through to the renderer; both
    are opaque to resolution itself.
    """

    __slots__ = ("_table", "_host", "_cache_control")

    def __init__(
        self, table: RouteTable, host: str = "", cache_control: str = ""
    ) -> None:
        self._table = table
        self._host = host
        self._cache_control = cache_control

    @property
    def table(self) -> RouteTable:
        return self._table

    @property
    def host(self) -> str:
        return self._host

    @property
    def cache_control(self) -> str:
        return self._cache_control

    def resolve(self, path: str) -> Resolution:
        """Resolve a request path against the route table."""
        return self._table.resolve(path)

    def host_for(self, request_host: str) -> str:
        """Return the configured host, falling back to the request's Host."""
        return self._host or request_host

    def index_handlers(self, host: str) -> List[str]:
        """List every configured import path under ``host``, ascending."""
        return [host + path for path in self._table.paths]
