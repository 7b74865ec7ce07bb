"""Bundled sample corpus."""

from __future__ import annotations

from stationgraph.content import maya, samuel, station_waiting
from stationgraph.models import DialogueGraph  # noqa: TC001 - return annotation only


def builtin_graphs() -> list[DialogueGraph]:
    """The bundled graphs, in registration order."""
    return [samuel.GRAPH, maya.GRAPH, station_waiting.GRAPH]
