"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import pytest

import stationgraph.observability.logging as log_module
from stationgraph.engine import DialogueSession
from stationgraph.models import NodeKey
from stationgraph.observability import close_file_logging, configure_logging, get_logger
from stationgraph.observability.logging import get_logs_dir, render_console, session_context

if TYPE_CHECKING:
    from pathlib import Path

    from stationgraph.graph import NodeRegistry
    from stationgraph.models import PlayerState


def _entries(path: Path) -> list[dict]:
    with path.open() as f:
        return [json.loads(line) for line in f]


def test_configure_logging_sets_level_warning() -> None:
    """Default verbosity (0) sets WARNING level."""
    configure_logging(verbosity=0)

    assert logging.getLogger().level == logging.WARNING


def test_configure_logging_verbose_sets_debug_root() -> None:
    """verbosity=1 opens the root logger; the console handler filters."""
    configure_logging(verbosity=1)

    assert logging.getLogger().level == logging.DEBUG


def test_get_logger_auto_configures() -> None:
    """get_logger configures logging if not already done."""
    log_module._configured = False

    logger = get_logger("test")

    assert log_module._configured is True
    assert logger is not None


def test_file_logging_creates_logs_dir(tmp_path: Path) -> None:
    """File logging writes under {project}/logs."""
    configure_logging(verbosity=0, log_to_file=True, project_path=tmp_path)

    assert get_logs_dir() == tmp_path / "logs"
    assert (tmp_path / "logs").exists()
    close_file_logging()


def test_no_logs_dir_without_file_logging(tmp_path: Path) -> None:
    """Without file logging, no logs directory is created."""
    configure_logging(verbosity=0, log_to_file=False, project_path=tmp_path)

    assert not (tmp_path / "logs").exists()


def test_file_logging_requires_project_path() -> None:
    """log_to_file=True without project_path raises ValueError."""
    with pytest.raises(ValueError, match="project_path is required"):
        configure_logging(verbosity=0, log_to_file=True, project_path=None)


def test_close_file_logging_clears_handler(tmp_path: Path) -> None:
    """close_file_logging closes the handler and clears the reference."""
    configure_logging(verbosity=0, log_to_file=True, project_path=tmp_path)
    assert log_module._file_handler is not None

    close_file_logging()

    assert log_module._file_handler is None


def test_jsonl_entries_carry_event_fields(tmp_path: Path) -> None:
    """Structlog key/values land as top-level JSONL fields."""
    configure_logging(verbosity=2, log_to_file=True, project_path=tmp_path)

    get_logger("test.context").info("choice_selected", handoff=False, applied=2)
    close_file_logging()

    entry = next(e for e in _entries(tmp_path / "logs" / "engine.jsonl") if e["message"] == "choice_selected")
    assert entry["handoff"] is False
    assert entry["applied"] == 2
    assert entry["level"] == "INFO"


def test_session_context_grouped_in_jsonl(tmp_path: Path) -> None:
    """Bound session values land under "session" inside the block only."""
    configure_logging(verbosity=2, log_to_file=True, project_path=tmp_path)
    logger = get_logger("test.bound")

    with session_context("p1", NodeKey(graph_key="samuel", node_id="samuel_hub_initial"), "visit_maya"):
        logger.info("inside", applied=1)
    logger.info("outside")
    close_file_logging()

    entries = {e["message"]: e for e in _entries(tmp_path / "logs" / "engine.jsonl")}
    assert entries["inside"]["session"] == {
        "player_id": "p1",
        "node": "samuel/samuel_hub_initial",
        "choice": "visit_maya",
    }
    assert entries["inside"]["applied"] == 1
    assert "player_id" not in entries["inside"]
    assert "session" not in entries["outside"]


def test_session_events_carry_player_and_node(
    tmp_path: Path, corpus: NodeRegistry, fresh_state: PlayerState
) -> None:
    """Events the dialogue session logs name the player and the node."""
    configure_logging(verbosity=0, log_to_file=True, project_path=tmp_path)

    DialogueSession(corpus, fresh_state).start(NodeKey(graph_key="samuel", node_id="samuel_introduction"))
    close_file_logging()

    entry = next(e for e in _entries(tmp_path / "logs" / "engine.jsonl") if e["message"] == "session_started")
    assert entry["session"] == {"player_id": "player", "node": "samuel/samuel_introduction"}


class TestRenderConsole:
    """Tests for the console line format."""

    def test_event_then_sorted_fields(self) -> None:
        line = render_console(None, "info", {"event": "choice_selected", "level": "info", "b": 2, "a": "x"})

        assert line == "choice_selected a='x' b=2"

    def test_session_suffix(self) -> None:
        line = render_console(
            None,
            "info",
            {"event": "interrupt_taken", "player_id": "p1", "node": "samuel/samuel_backstory_intro", "choice": "c"},
        )

        assert line == "interrupt_taken [p1 samuel/samuel_backstory_intro c]"

    def test_bare_event(self) -> None:
        assert render_console(None, "debug", {"event": "handoff", "timestamp": "now"}) == "handoff"


def test_console_shows_rendered_line(capsys: pytest.CaptureFixture[str]) -> None:
    """Console output is the rendered line, not the raw event dict."""
    configure_logging(verbosity=1)

    get_logger("test.console").info("quarantine_mismatch", missing=1)

    err = capsys.readouterr().err
    assert "quarantine_mismatch missing=1" in err
    assert "'event'" not in err
