"""Logging for stationgraph: structlog events over stdlib handlers.

Every log call produces a structlog event dict. Two sinks consume it:

- the console (stderr through rich), one ``event key=value`` line per event,
  filtered by ``-v``
- with ``--log``, ``{project}/logs/engine.jsonl``, one JSON object per event
  at DEBUG and above

While a dialogue session processes a step it binds the player, the node and
the choice with :func:`session_context`. Both sinks pick that up: the console
appends ``[player node choice]`` and the JSONL entry groups it under
``session`` so one player's trail can be filtered out of a shared file.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - Used at runtime for path operations
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

    from structlog.typing import EventDict, Processor, WrappedLogger

    from stationgraph.models import NodeKey

EVENT_FILE = "engine.jsonl"
SESSION_KEYS = ("player_id", "node", "choice")
VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}

_configured = False
_file_handler: logging.FileHandler | None = None
_logs_dir: Path | None = None

_key_values = structlog.processors.KeyValueRenderer(sort_keys=True)


def session_context(
    player_id: str, node: NodeKey | str, choice: str | None = None
) -> AbstractContextManager[Any]:
    """Bind the session's player and location to every event logged in a block."""
    values = {"player_id": player_id, "node": str(node)}
    if choice is not None:
        values["choice"] = choice
    return structlog.contextvars.bound_contextvars(**values)


def render_console(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
    """Render an event as ``event key=value ... [player node choice]``.

    Level and time are left to the rich handler.
    """
    fields = {k: v for k, v in event_dict.items() if k not in ("level", "timestamp")}
    event = str(fields.pop("event", ""))
    session = [str(fields.pop(key)) for key in SESSION_KEYS if key in fields]
    line = f"{event} {_key_values(logger, method_name, fields)}".rstrip()
    if session:
        line += f" [{' '.join(session)}]"
    return line


class EngineEventHandler(logging.FileHandler):
    """Appends one JSON object per event to the engine event file.

    Entry layout: ``timestamp``, ``level``, ``logger``, ``message``, then
    ``session`` when a session context was bound, then the event's own
    key/values.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if self.stream is None:
                self.stream = self._open()
            self.stream.write(json.dumps(self.to_entry(record), default=str) + "\n")
            self.flush()
        except Exception:
            self.handleError(record)

    @staticmethod
    def to_entry(record: logging.LogRecord) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        # wrap_for_formatter hands the event dict over as record.msg
        if not isinstance(record.msg, dict):
            entry["message"] = record.getMessage()
            return entry

        fields = dict(record.msg)
        fields.pop("level", None)
        entry["timestamp"] = fields.pop("timestamp", entry["timestamp"])
        entry["message"] = fields.pop("event", "")
        session = {key: fields.pop(key) for key in SESSION_KEYS if key in fields}
        if session:
            entry["session"] = session
        entry.update(fields)
        return entry


def configure_logging(
    verbosity: int = 0,
    log_to_file: bool = False,
    project_path: Path | None = None,
) -> None:
    """Configure both sinks. Safe to call again; the CLI does once the project loads.

    Args:
        verbosity: 0=WARNING (default), 1=INFO, 2+=DEBUG on the console.
        log_to_file: Also write every event to {project_path}/logs/engine.jsonl.
        project_path: Project directory. Required if log_to_file=True.

    Raises:
        ValueError: If log_to_file=True but project_path is not provided.
    """
    global _configured, _file_handler, _logs_dir

    if log_to_file and project_path is None:
        raise ValueError("project_path is required when log_to_file=True")
    close_file_logging()

    console_handler = RichHandler(
        console=Console(stderr=True),
        level=VERBOSITY_LEVELS.get(verbosity, logging.DEBUG),
        rich_tracebacks=True,
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
        markup=False,
    )
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, render_console],
            foreign_pre_chain=[structlog.contextvars.merge_contextvars],
        )
    )
    handlers: list[logging.Handler] = [console_handler]

    _logs_dir = None
    if log_to_file and project_path is not None:
        _logs_dir = project_path / "logs"
        _logs_dir.mkdir(parents=True, exist_ok=True)
        _file_handler = EngineEventHandler(_logs_dir / EVENT_FILE, mode="a", encoding="utf-8")
        handlers.append(_file_handler)

    # The file sink wants everything; the console handler filters on its own level
    root_level = logging.DEBUG if (verbosity > 0 or log_to_file) else logging.WARNING
    logging.basicConfig(level=root_level, handlers=handlers, force=True)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        # Module-level loggers must pick up a later reconfiguration
        cache_logger_on_first_use=False,
    )
    _configured = True


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Structured logger for ``name``; configures console logging on first use."""
    if not _configured:
        configure_logging()
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


def get_logs_dir() -> Path | None:
    """Directory holding engine.jsonl, or None when file logging is off."""
    return _logs_dir


def close_file_logging() -> None:
    global _file_handler
    if _file_handler is not None:
        _file_handler.close()
        _file_handler = None
