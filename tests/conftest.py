"""Shared test fixtures for the vanity URL server tests."""

from pathlib import Path
from typing import Callable, Dict, Optional

import pytest
import yaml

from vanityurls.config import VanityConfig, load_config


def _make_config(tmp_path: Path, overrides: Optional[Dict] = None) -> str:
    """Write a minimal test config and return its path."""
    config = {
        "host": "go.example.com",
        "cache_max_age": 60,
        "paths": {
            "/portmidi": {"repo": "https://github.com/rakyll/portmidi"},
            "/portmidi/sub": {"repo": "https://github.com/rakyll/portmidi-sub"},
            "/hgrepo": {
                "repo": "https://bitbucket.org/user/hgrepo",
                "vcs": "hg",
            },
        },
    }
    if overrides:
        config.update(overrides)

    path = tmp_path / "vanity.yaml"
    path.write_text(yaml.safe_dump(config))
    return str(path)


@pytest.fixture()
def test_config_path(tmp_path: Path) -> str:
    """Return the path to a temporary test config file."""
    return _make_config(tmp_path)


@pytest.fixture()
def test_config(test_config_path: str) -> VanityConfig:
    """Return a loaded test VanityConfig."""
    return load_config(test_config_path)


@pytest.fixture()
def make_config(tmp_path: Path) -> Callable[[Optional[Dict]], str]:
    """Return a factory writing a test config with top-level overrides."""

    def _factory(overrides: Optional[Dict] = None) -> str:
        return _make_config(tmp_path, overrides)

    return _factory
