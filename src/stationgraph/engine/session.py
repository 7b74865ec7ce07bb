"""Dialogue session: the runtime facade the UI talks to.

A session owns one PlayerState and moves one player through the registry:

    start(location) -> get_current_node() -> select_choice(id) -> ...

Every mutating call works on a copy of the state and only replaces the
session's state when the whole step succeeded (consequence applied, target
resolved, target entered). A failed step raises and leaves the state as it
was. When a choice leads to a sentinel the session suspends until the
collaborator calls :meth:`DialogueSession.resume`.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from stationgraph.engine import conditions, content
from stationgraph.engine.checkpoint import CheckpointStore
from stationgraph.engine.consequences import AppliedEffect, ConsequenceApplier
from stationgraph.engine.errors import (
    ChoiceNotAvailableError,
    NodeLockedError,
    RegistryDefectError,
    SessionStateError,
)
from stationgraph.engine.interrupts import InterruptController, InterruptPhase
from stationgraph.engine.transitions import (
    SentinelHandoff,
    Transition,
    resolve_interrupt_transition,
    resolve_transition,
)
from stationgraph.models import (
    InterruptWindow,
    NodeKey,
    Pattern,
    PlayerState,
    SimulationDescriptor,
    StateChange,
)
from stationgraph.observability.logging import get_logger, session_context

if TYPE_CHECKING:
    from collections.abc import Callable

    from stationgraph.config import ProjectConfig
    from stationgraph.graph.registry import NodeRegistry

log = get_logger(__name__)


@dataclass(frozen=True)
class ChoiceView:
    """A visible choice as the UI should render it."""

    choice_id: str
    text: str
    enabled: bool = True
    disabled_reason: str | None = None
    orb_locked: bool = False
    pattern: Pattern | None = None
    preview: str | None = None
    has_interrupt: bool = False


@dataclass(frozen=True)
class NodeView:
    """Everything the UI needs to present the current node."""

    key: NodeKey
    speaker: str
    text: str
    emotion: str | None = None
    visible_choices: list[ChoiceView] = field(default_factory=list)
    simulation: SimulationDescriptor | None = None
    interrupt: InterruptWindow | None = None
    interrupt_choice_id: str | None = None


@dataclass(frozen=True)
class ChoiceResult:
    """Outcome of a selection or a taken interrupt.

    Attributes:
        resolution: The node now current, or the hand-off the session is
            suspended on.
        applied: Every state change made, in order (consequence, pattern
            award, then the entered node's ``on_enter`` effects).
    """

    resolution: Transition
    applied: list[AppliedEffect] = field(default_factory=list)

    @property
    def is_handoff(self) -> bool:
        return isinstance(self.resolution, SentinelHandoff)


class SessionPhase(StrEnum):
    NOT_STARTED = "not_started"
    AT_NODE = "at_node"
    SUSPENDED = "suspended"


def get_current_node(
    registry: NodeRegistry,
    location: NodeKey,
    state: PlayerState,
    *,
    catalog: dict[str, tuple[str, ...]] | None = None,
) -> NodeView:
    """Resolve what the player sees at ``location``. Pure read of ``state``.

    Raises:
        RegistryDefectError: If ``location`` is not a registered node.
    """
    node = registry.get(location)
    if node is None:
        raise RegistryDefectError(location, "unknown node")

    character = registry.character_for(location.graph_key)
    resolved = content.resolve(node, state, location)
    offered = conditions.evaluate_choices(node, state, character_id=character, catalog=catalog)

    views = [
        ChoiceView(
            choice_id=item.choice.choice_id,
            text=content.choice_text(item.choice, state),
            enabled=item.enabled,
            disabled_reason=item.reason,
            orb_locked=item.orb_locked,
            pattern=item.choice.pattern,
            preview=item.choice.preview,
            has_interrupt=item.choice.interrupt is not None,
        )
        for item in offered
    ]
    interrupt_item = next(
        (item for item in offered if item.selectable and item.choice.interrupt is not None), None
    )
    return NodeView(
        key=location,
        speaker=node.speaker,
        text=resolved.text,
        emotion=resolved.emotion,
        visible_choices=views,
        simulation=node.simulation,
        interrupt=interrupt_item.choice.interrupt if interrupt_item else None,
        interrupt_choice_id=interrupt_item.choice.choice_id if interrupt_item else None,
    )


class DialogueSession:
    """Single-writer session over one PlayerState.

    Args:
        registry: The built content corpus.
        state: The player's state; the session owns it from here on.
        checkpoints: Where to save the state at session boundaries.
        applier: Consequence applier (carries the mystery catalog).
        enforce_required_state: Refuse to enter nodes whose
            ``required_state`` fails after the step's consequences.
        clock: Monotonic clock for interrupt windows.
    """

    def __init__(
        self,
        registry: NodeRegistry,
        state: PlayerState,
        *,
        checkpoints: CheckpointStore | None = None,
        applier: ConsequenceApplier | None = None,
        enforce_required_state: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = registry
        self._state = state
        self.checkpoints = checkpoints
        self.applier = applier or ConsequenceApplier()
        self.enforce_required_state = enforce_required_state
        self.interrupts = InterruptController(clock)
        self.phase = SessionPhase.NOT_STARTED
        self.pending: SentinelHandoff | None = None

    @classmethod
    def from_config(
        cls,
        config: ProjectConfig,
        registry: NodeRegistry,
        state: PlayerState,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> DialogueSession:
        """Create a session with the project's engine settings.

        Checkpoints go to ``engine.checkpoint_dir`` and
        ``engine.enforce_required_state`` decides whether locked nodes refuse
        entry.
        """
        return cls(
            registry,
            state,
            checkpoints=CheckpointStore(config.engine.checkpoint_dir),
            enforce_required_state=config.engine.enforce_required_state,
            clock=clock,
        )

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def location(self) -> NodeKey | None:
        return self._state.current

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self, location: NodeKey | None = None) -> NodeView:
        """Enter ``location`` (or the state's saved location) and present it.

        Raises:
            SessionStateError: If no location is given and none is saved.
            NodeLockedError: If the node's ``required_state`` fails.
        """
        target = location or self._state.current
        if target is None:
            raise SessionStateError("no location to start from")
        with session_context(self._state.player_id, target):
            working = self._state.model_copy(deep=True)
            self._enter(target, working)
            self._commit(working, target)
            log.info("session_started")
        return self.get_current_node()

    def get_current_node(self) -> NodeView:
        """Present the current node.

        Raises:
            SessionStateError: If the session is not at a node.
        """
        location = self._require_at_node()
        return get_current_node(self.registry, location, self._state, catalog=self.applier.catalog)

    def select_choice(self, choice_id: str) -> ChoiceResult:
        """Take a visible, enabled choice at the current node.

        The choice's consequence and its pattern award are applied as one
        bundle, then the transition is resolved and, for a node target, the
        node is entered. Any open interrupt window is cancelled once the step
        has succeeded; a failed step leaves it open.

        Raises:
            ChoiceNotAvailableError: If the choice is unknown, hidden,
                disabled or orb-locked.
            ConsequenceError: If the consequence is rejected.
            NodeLockedError: If the target node can't be entered.
        """
        location = self._require_at_node()
        with session_context(self._state.player_id, location, choice_id):
            node = self.registry.get(location)
            if node is None:
                raise RegistryDefectError(location, "current node vanished from registry")
            character = self.registry.character_for(location.graph_key)
            offered = {
                item.choice.choice_id: item
                for item in conditions.evaluate_choices(
                    node, self._state, character_id=character, catalog=self.applier.catalog
                )
            }
            item = offered.get(choice_id)
            if item is None:
                reason = "not visible" if node.choice(choice_id) else "unknown choice"
                raise ChoiceNotAvailableError(location, choice_id, reason)
            if not item.enabled:
                raise ChoiceNotAvailableError(location, choice_id, item.reason or "disabled")
            if item.orb_locked:
                raise ChoiceNotAvailableError(location, choice_id, "orb locked")

            bundle: list[StateChange] = []
            if item.choice.consequence is not None:
                bundle.append(item.choice.consequence)
            if item.choice.pattern is not None:
                bundle.append(StateChange(pattern_changes={item.choice.pattern: 1}, orb_award=1))

            working = self._state.model_copy(deep=True)
            applied = self.applier.apply(working, bundle, character_id=character)
            transition = resolve_transition(self.registry, location, choice_id)
            result = self._complete(working, transition, applied, settle=self.interrupts.cancel)
            log.info("choice_selected", handoff=result.is_handoff)
            return result

    def take_interrupt(self) -> ChoiceResult | None:
        """Report the interrupt action for the open window.

        Returns:
            The result of following the interrupt, or None if the window had
            already closed (the node's ordinary choices still apply).
        """
        location = self._require_at_node()
        window = self.interrupts.pending()
        if window is None:
            return None
        choice_id = self.interrupts.choice_id or ""
        with session_context(self._state.player_id, location, choice_id):
            working = self._state.model_copy(deep=True)
            character = self.registry.character_for(location.graph_key)
            bundle = [window.consequence] if window.consequence is not None else []
            applied = self.applier.apply(working, bundle, character_id=character)
            transition = resolve_interrupt_transition(self.registry, location, choice_id)
            result = self._complete(working, transition, applied, settle=self.interrupts.mark_taken)
            log.info("interrupt_taken", type=str(window.type))
            return result

    def expire_interrupt(self) -> None:
        """Report that the interrupt countdown ran out. Never raises."""
        self.interrupts.expire()

    def resume(self, resume_at: NodeKey | str, result: dict[str, Any] | None = None) -> NodeView:
        """Continue after a sentinel hand-off at the node the collaborator names.

        A bare node id resumes in the graph the hand-off came from.

        Raises:
            SessionStateError: If the session is not suspended.
            NodeLockedError: If the resume node can't be entered.
        """
        if self.phase is not SessionPhase.SUSPENDED or self.pending is None:
            raise SessionStateError("resume called while not suspended")
        handoff = self.pending
        target = (
            resume_at
            if isinstance(resume_at, NodeKey)
            else NodeKey(graph_key=handoff.source.graph_key, node_id=resume_at)
        )
        with session_context(self._state.player_id, target):
            working = self._state.model_copy(deep=True)
            self._enter(target, working)
            self._commit(working, target)
            log.info(
                "handoff_resumed",
                sentinel=str(handoff.sentinel),
                result_keys=sorted(result or {}),
            )
        return self.get_current_node()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_at_node(self) -> NodeKey:
        if self.phase is SessionPhase.SUSPENDED:
            raise SessionStateError(f"session suspended on {self.pending.sentinel if self.pending else '?'}")
        if self.phase is not SessionPhase.AT_NODE or self._state.current is None:
            raise SessionStateError("session not started")
        return self._state.current

    def _complete(
        self,
        working: PlayerState,
        transition: Transition,
        applied: list[AppliedEffect],
        *,
        settle: Callable[[], None],
    ) -> ChoiceResult:
        # The interrupt window is only settled once nothing else can fail.
        if isinstance(transition, SentinelHandoff):
            settle()
            self._state = working
            self.phase = SessionPhase.SUSPENDED
            self.pending = transition
            self.interrupts.present()
            log.info("handoff", sentinel=str(transition.sentinel))
            return ChoiceResult(resolution=transition, applied=applied)

        applied = [*applied, *self._enter(transition, working)]
        settle()
        self._commit(working, transition)
        return ChoiceResult(resolution=transition, applied=applied)

    def _enter(self, key: NodeKey, working: PlayerState) -> list[AppliedEffect]:
        node = self.registry.get(key)
        if node is None:
            raise RegistryDefectError(key, "unknown node")
        character = self.registry.character_for(key.graph_key)
        if self.enforce_required_state:
            reasons = conditions.unmet_requirements(
                node.required_state, working, character_id=character, catalog=self.applier.catalog
            )
            if reasons:
                raise NodeLockedError(key, "; ".join(reasons))
        applied = self.applier.apply(working, node.on_enter, character_id=character)
        working.current = key
        working.record_visit(key)
        return applied

    def _commit(self, working: PlayerState, key: NodeKey) -> None:
        self._state = working
        self.phase = SessionPhase.AT_NODE
        self.pending = None
        self._present(key)

        node = self.registry.get(key)
        if node is not None and node.metadata.session_boundary and self.checkpoints is not None:
            self.checkpoints.save(self._state.player_id, self._state)

    def _present(self, key: NodeKey) -> None:
        self.interrupts.present()
        view = get_current_node(self.registry, key, self._state, catalog=self.applier.catalog)
        if view.interrupt is not None and view.interrupt_choice_id is not None:
            self.interrupts.open(view.interrupt, view.interrupt_choice_id)

    @property
    def interrupt_phase(self) -> InterruptPhase:
        return self.interrupts.poll()
