"""Project configuration loading.

A project directory may hold a ``project.yaml``::

    content:
      builtin: true          # include the bundled sample graphs
      paths: [graphs]        # extra directories of *.yaml graphs
    qa:
      report: qa/unreachable-report.json
      quarantine: qa/unreachable-quarantine.json
      max_examples: 40
    engine:
      enforce_required_state: true
      checkpoint_dir: saves

Relative paths are resolved against the project directory. A missing file
means all defaults. ``SG_REPORT``, ``SG_QUARANTINE`` and
``SG_CHECKPOINT_DIR`` override the matching keys.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

CONFIG_FILE = "project.yaml"

DEFAULT_REPORT = "qa/unreachable-report.json"
DEFAULT_QUARANTINE = "qa/unreachable-quarantine.json"
DEFAULT_MAX_EXAMPLES = 40
DEFAULT_CHECKPOINT_DIR = "saves"


class ConfigError(Exception):
    """Raised when project configuration cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load project config at {path}: {reason}")


@dataclass
class ContentConfig:
    """Which graphs make up the corpus."""

    builtin: bool = True
    paths: list[Path] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root: Path) -> ContentConfig:
        paths = data.get("paths", [])
        if not isinstance(paths, list):
            raise ValueError("content.paths must be a list")
        return cls(
            builtin=bool(data.get("builtin", True)),
            paths=[root / str(p) for p in paths],
        )


@dataclass
class QAConfig:
    """Reachability audit and quarantine verification settings.

    Resolution order for each path:
    1. Environment variable (SG_REPORT / SG_QUARANTINE)
    2. Project config
    3. Default under ``qa/``
    """

    report: Path = field(default_factory=lambda: Path(DEFAULT_REPORT))
    quarantine: Path = field(default_factory=lambda: Path(DEFAULT_QUARANTINE))
    max_examples: int = DEFAULT_MAX_EXAMPLES

    @classmethod
    def from_dict(cls, data: dict[str, Any], root: Path) -> QAConfig:
        report = os.getenv("SG_REPORT") or data.get("report", DEFAULT_REPORT)
        quarantine = os.getenv("SG_QUARANTINE") or data.get("quarantine", DEFAULT_QUARANTINE)
        max_examples = int(data.get("max_examples", DEFAULT_MAX_EXAMPLES))
        if max_examples < 1:
            raise ValueError("qa.max_examples must be at least 1")
        return cls(
            report=root / str(report),
            quarantine=root / str(quarantine),
            max_examples=max_examples,
        )


@dataclass
class EngineConfig:
    """Runtime session settings."""

    enforce_required_state: bool = True
    checkpoint_dir: Path = field(default_factory=lambda: Path(DEFAULT_CHECKPOINT_DIR))

    @classmethod
    def from_dict(cls, data: dict[str, Any], root: Path) -> EngineConfig:
        checkpoint_dir = os.getenv("SG_CHECKPOINT_DIR") or data.get("checkpoint_dir", DEFAULT_CHECKPOINT_DIR)
        return cls(
            enforce_required_state=bool(data.get("enforce_required_state", True)),
            checkpoint_dir=root / str(checkpoint_dir),
        )


@dataclass
class ProjectConfig:
    """Configuration for a stationgraph project."""

    root: Path
    content: ContentConfig = field(default_factory=ContentConfig)
    qa: QAConfig = field(default_factory=QAConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root: Path) -> ProjectConfig:
        """Create config from a parsed ``project.yaml`` mapping.

        Raises:
            ValueError: If a section has the wrong shape.
        """
        sections: dict[str, dict[str, Any]] = {}
        for name in ("content", "qa", "engine"):
            section = data.get(name) or {}
            if not isinstance(section, dict):
                raise ValueError(f"'{name}' must be a mapping")
            sections[name] = dict(section)
        return cls(
            root=root,
            content=ContentConfig.from_dict(sections["content"], root),
            qa=QAConfig.from_dict(sections["qa"], root),
            engine=EngineConfig.from_dict(sections["engine"], root),
        )


def load_project_config(project_path: Path) -> ProjectConfig:
    """Load project configuration from project.yaml, or defaults if there is none.

    Raises:
        ConfigError: If the file exists but cannot be parsed or is invalid.
    """
    config_path = project_path / CONFIG_FILE
    if not config_path.exists():
        return ProjectConfig.from_dict({}, project_path)

    yaml = YAML()
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            return ProjectConfig.from_dict({}, project_path)
        if not isinstance(data, dict):
            raise ConfigError(config_path, "Top level must be a mapping")

        return ProjectConfig.from_dict(dict(data), project_path)
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(config_path, str(e)) from e
