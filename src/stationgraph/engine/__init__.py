"""Runtime engine: conditions, content resolution, consequences, sessions."""

from stationgraph.engine.checkpoint import CheckpointError, CheckpointStore
from stationgraph.engine.consequences import AppliedEffect, ConsequenceApplier
from stationgraph.engine.errors import (
    ChoiceNotAvailableError,
    ConsequenceError,
    EngineError,
    NodeLockedError,
    RegistryDefectError,
    SessionStateError,
)
from stationgraph.engine.interrupts import CancellationToken, InterruptController, InterruptPhase
from stationgraph.engine.session import (
    ChoiceResult,
    ChoiceView,
    DialogueSession,
    NodeView,
    SessionPhase,
    get_current_node,
)
from stationgraph.engine.transitions import SentinelHandoff

__all__ = [
    "AppliedEffect",
    "CancellationToken",
    "CheckpointError",
    "CheckpointStore",
    "ChoiceNotAvailableError",
    "ChoiceResult",
    "ChoiceView",
    "ConsequenceApplier",
    "ConsequenceError",
    "DialogueSession",
    "EngineError",
    "InterruptController",
    "InterruptPhase",
    "NodeLockedError",
    "NodeView",
    "RegistryDefectError",
    "SentinelHandoff",
    "SessionPhase",
    "SessionStateError",
    "get_current_node",
]
