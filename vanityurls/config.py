"""Configuration loader for the vanity URL server.

Reads a YAML document describing the served host, the Cache-Control max age
and the path-to-repository mappings, fills in the go-source display template
and VCS where they can be inferred from well-known hosts, and validates the
result before any route table is built from it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from vanityurls.router import Resolver, RouteEntry, RouteTable, VCSKind

DEFAULT_CACHE_MAX_AGE = 86400  # 24 hours (in seconds)

_GITHUB_PREFIX = "https://github.com/"
_BITBUCKET_PREFIX = "https://bitbucket.org"


class ConfigError(ValueError):
    """Base class for configuration errors."""


class InvalidConfigError(ConfigError):
    """Raised when the configuration document is malformed."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__("invalid config: {}".format(detail))


class CacheMaxAgeNegativeError(ConfigError):
    """Raised when cache_max_age is below zero."""

    def __init__(self, value: int) -> None:
        self.value = value
        super().__init__("cache_max_age is negative: {}".format(value))


class UnknownVCSError(ConfigError):
    """Raised when a path names a VCS the go tool does not support."""

    def __init__(self, path: str, vcs: str) -> None:
        self.path = path
        self.vcs = vcs
        super().__init__("configuration for {}: unknown VCS {}".format(path, vcs))


class InvalidVCSError(ConfigError):
    """Raised when no VCS is given and none can be inferred from the repo."""

    def __init__(self, path: str, repo: str) -> None:
        self.path = path
        self.repo = repo
        super().__init__(
            "configuration for {}: cannot infer VCS from {}".format(path, repo)
        )


@dataclass
class PathConfig:
    """A single validated path mapping."""

    path: str
    repo: str
    vcs: VCSKind
    display: str = ""

    def to_entry(self) -> RouteEntry:
        return RouteEntry(
            path=self.path, repo_url=self.repo, vcs=self.vcs, display=self.display
        )


@dataclass
class VanityConfig:
    """Top-level server configuration."""

    host: str = ""
    cache_max_age: int = DEFAULT_CACHE_MAX_AGE
    paths: List[PathConfig] = field(default_factory=list)

    @property
    def cache_control(self) -> str:
        """The Cache-Control header value sent with vanity pages."""
        return "public, max-age={}".format(self.cache_max_age)

    def build_resolver(self) -> Resolver:
        """Build a fresh route table and wrap it in a Resolver."""
        table = RouteTable.build(p.to_entry() for p in self.paths)
        return Resolver(table, host=self.host, cache_control=self.cache_control)


def normalize_path(path: str) -> str:
    """Strip one trailing slash; the root path becomes the empty string."""
    if path.endswith("/"):
        return path[:-1]
    return path


def infer_display(repo: str) -> str:
    """Return the default go-source template for well-known hosts."""
    if repo.startswith(_GITHUB_PREFIX):
        return (
            "{0} {0}/tree/master{{/dir}} "
            "{0}/blob/master{{/dir}}/{{file}}#L{{line}}"
        ).format(repo)
    if repo.startswith(_BITBUCKET_PREFIX):
        return (
            "{0} {0}/src/default{{/dir}} "
            "{0}/src/default{{/dir}}/{{file}}#{{file}}-{{line}}"
        ).format(repo)
    return ""


def resolve_vcs(path: str, repo: str, vcs: Optional[str]) -> VCSKind:
    """Validate an explicit VCS or infer one from the repository URL.

    Raises:
        UnknownVCSError: If ``vcs`` is set but not a supported kind.
        InvalidVCSError: If ``vcs`` is unset and cannot be inferred.
    """
    if vcs:
        try:
            return VCSKind(vcs)
        except ValueError:
            raise UnknownVCSError(path, vcs) from None
    if repo.startswith(_GITHUB_PREFIX):
        return VCSKind.GIT
    raise InvalidVCSError(path, repo)


def parse_config(raw: Any) -> VanityConfig:
    """Validate a parsed YAML document and build a VanityConfig.

    Paths that collapse to the same value after normalization (``/foo`` and
    ``/foo/``) keep the last declared mapping.

    Raises:
        ConfigError: If any part of the document is invalid.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidConfigError("top-level document must be a mapping")

    host = raw.get("host") or ""
    if not isinstance(host, str):
        raise InvalidConfigError("host must be a string")

    cache_max_age = raw.get("cache_max_age")
    if cache_max_age is None:
        cache_max_age = DEFAULT_CACHE_MAX_AGE
    elif isinstance(cache_max_age, bool) or not isinstance(cache_max_age, int):
        raise InvalidConfigError("cache_max_age must be an integer")
    elif cache_max_age < 0:
        raise CacheMaxAgeNegativeError(cache_max_age)

    raw_paths = raw.get("paths") or {}
    if not isinstance(raw_paths, dict):
        raise InvalidConfigError("paths must be a mapping")

    paths: Dict[str, PathConfig] = {}
    for key, entry in raw_paths.items():
        if not isinstance(key, str):
            raise InvalidConfigError("path {!r} must be a string".format(key))
        if not isinstance(entry, dict):
            raise InvalidConfigError(
                "configuration for {} must be a mapping".format(key)
            )

        repo = entry.get("repo") or ""
        if not isinstance(repo, str) or not repo:
            raise InvalidConfigError(
                "configuration for {}: repo is required".format(key)
            )

        display = entry.get("display") or infer_display(repo)
        vcs = resolve_vcs(key, repo, entry.get("vcs"))

        normalized = normalize_path(key)
        # Re-insert so the last declaration also takes the later position.
        paths.pop(normalized, None)
        paths[normalized] = PathConfig(
            path=normalized, repo=repo, vcs=vcs, display=display
        )

    return VanityConfig(
        host=host, cache_max_age=cache_max_age, paths=list(paths.values())
    )


def load_config(path: Union[str, Path]) -> VanityConfig:
    """Load server configuration from a YAML file.

    Args:
        path: Path to the YAML config file.

    Returns:
        A validated VanityConfig instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigError: If the config file contains invalid data.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise InvalidConfigError("cannot parse {}: {}".format(path, exc)) from exc

    return parse_config(raw)
