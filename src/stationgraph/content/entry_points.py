"""Exported entry points of the bundled graphs.

Graph modules link to each other only through these objects
(``MAYA.ref("INTRODUCTION")``). They live apart from the node lists so two
graphs can link to each other without importing each other.
"""

from __future__ import annotations

from stationgraph.models import EntryPoints

SAMUEL = EntryPoints(
    "samuel",
    INTRODUCTION="samuel_introduction",
    HUB_INITIAL="samuel_hub_initial",
    HUB_RETURN="samuel_hub_return",
    BACKSTORY="samuel_backstory_intro",
    # Resume point after the calibration simulation hands back.
    CALIBRATION_COMPLETE="samuel_calibration_complete",
)

MAYA = EntryPoints(
    "maya",
    INTRODUCTION="maya_introduction",
    REVISIT="maya_revisit",
)

STATION_WAITING = EntryPoints(
    "station_waiting",
    BENCH="waiting_bench",
)
