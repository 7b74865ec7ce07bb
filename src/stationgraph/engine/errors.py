"""Runtime engine errors.

Build-time authoring defects live in :mod:`stationgraph.graph.errors`. The
errors here are raised while a session runs; each one leaves the player
state exactly as it was before the failed call.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from stationgraph.models import NodeKey  # noqa: TC001 - dataclass field type


class EngineError(Exception):
    """Base class for runtime engine errors."""


@dataclass
class ConsequenceError(EngineError):
    """Raised when a consequence bundle references something the state doesn't have.

    Nothing from the bundle has been applied.

    Attributes:
        problems: One line per rejected effect.
    """

    problems: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__("Consequence rejected: " + "; ".join(self.problems))


@dataclass
class ChoiceNotAvailableError(EngineError):
    """Raised when the UI selects a choice that is unknown, hidden, disabled or orb-locked."""

    node: NodeKey
    choice_id: str
    reason: str = "unknown choice"

    def __post_init__(self) -> None:
        super().__init__(f"Choice '{self.choice_id}' at {self.node} is not available: {self.reason}")


@dataclass
class NodeLockedError(EngineError):
    """Raised when a transition would enter a node whose ``required_state`` fails.

    The selection that led here has been rolled back.
    """

    node: NodeKey
    reason: str = ""

    def __post_init__(self) -> None:
        msg = f"Cannot enter {self.node}"
        if self.reason:
            msg += f": {self.reason}"
        super().__init__(msg)


class SessionStateError(EngineError):
    """Raised when a session operation is invalid in the current phase."""


@dataclass
class RegistryDefectError(EngineError):
    """Raised when a transition can't be resolved at runtime.

    Every target is resolved when the registry is built, so this means the
    registry was built from different content than the session is using.
    """

    node: NodeKey
    detail: str

    def __post_init__(self) -> None:
        super().__init__(f"Registry defect at {self.node}: {self.detail}")
