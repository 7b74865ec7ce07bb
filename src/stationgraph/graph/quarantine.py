"""Quarantine verification: unreachable report vs checked-in allow-list.

The quarantine file lists nodes that are intentionally unreachable (drafts,
retired content). The verifier requires an exact match: a newly unreachable
node must be either reconnected or quarantined by a human, and a
quarantined node that became reachable must be taken off the list.

Both files share the ``{"graphKey": ..., "nodeId": ...}`` entry shape.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from stationgraph.models import NodeKey

DEFAULT_MAX_EXAMPLES = 40


class QuarantineFileError(Exception):
    """Raised when a report or quarantine file can't be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read {path}: {reason}")


def _parse_entries(path: Path, data: Any, field_name: str) -> set[NodeKey]:
    if not isinstance(data, dict) or not isinstance(data.get(field_name), list):
        raise QuarantineFileError(path, f"expected an object with a '{field_name}' list")
    keys: set[NodeKey] = set()
    for entry in data[field_name]:
        try:
            keys.add(NodeKey(graph_key=entry["graphKey"], node_id=entry["nodeId"]))
        except (KeyError, TypeError) as e:
            raise QuarantineFileError(path, f"malformed entry {entry!r}") from e
    return keys


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise QuarantineFileError(path, "File not found")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise QuarantineFileError(path, str(e)) from e


def load_report(path: Path) -> set[NodeKey]:
    """Unreachable nodes listed in an audit report."""
    return _parse_entries(path, _read_json(path), "unreachable")


def load_quarantine(path: Path) -> set[NodeKey]:
    """Nodes listed in a quarantine file."""
    return _parse_entries(path, _read_json(path), "nodes")


def write_quarantine(path: Path, keys: set[NodeKey] | list[NodeKey]) -> Path:
    """Replace the quarantine list with ``keys`` (sorted)."""
    data = {
        "generated_at": datetime.now(UTC).isoformat(),
        "nodes": [
            {"graphKey": k.graph_key, "nodeId": k.node_id}
            for k in sorted(set(keys), key=NodeKey.sort_key)
        ],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    return path


@dataclass
class QuarantineDiff:
    """Mismatch between what is unreachable and what is quarantined.

    Attributes:
        missing: Unreachable but not quarantined.
        extra: Quarantined but not unreachable (reachable again, or gone).
    """

    missing: list[NodeKey] = field(default_factory=list)
    extra: list[NodeKey] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.extra

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def format_lines(self, max_examples: int = DEFAULT_MAX_EXAMPLES) -> list[str]:
        """Diagnostic output, at most ``max_examples`` entries per section."""
        if self.ok:
            return ["Unreachable nodes match quarantine list."]
        lines: list[str] = []
        for title, keys in (
            ("Missing in quarantine list", self.missing),
            ("Extra in quarantine list", self.extra),
        ):
            if not keys:
                continue
            lines.append(f"{title} ({len(keys)}):")
            lines.extend(f"  - {k}" for k in keys[:max_examples])
            if len(keys) > max_examples:
                lines.append(f"  ... and {len(keys) - max_examples} more")
        return lines


def diff(unreachable: set[NodeKey], quarantined: set[NodeKey]) -> QuarantineDiff:
    """Compare in both directions."""
    return QuarantineDiff(
        missing=sorted(unreachable - quarantined, key=NodeKey.sort_key),
        extra=sorted(quarantined - unreachable, key=NodeKey.sort_key),
    )


def verify(report_path: Path, quarantine_path: Path) -> QuarantineDiff:
    """Read both files and diff them.

    Raises:
        QuarantineFileError: If either file is missing or malformed.
    """
    return diff(load_report(report_path), load_quarantine(quarantine_path))
