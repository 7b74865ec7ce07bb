"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from stationgraph.graph import NodeRegistry, load_corpus
from stationgraph.models import PlayerState


@pytest.fixture(autouse=True)
def isolate_sg_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep SG_* overrides from the developer's shell or .env out of tests."""
    for name in ("SG_REPORT", "SG_QUARANTINE", "SG_CHECKPOINT_DIR", "SG_PROJECT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def corpus() -> NodeRegistry:
    """The bundled sample corpus, built once per run."""
    return load_corpus()


@pytest.fixture
def fresh_state(corpus: NodeRegistry) -> PlayerState:
    """A new player who knows every bundled character."""
    return PlayerState.new(characters=corpus.characters)
