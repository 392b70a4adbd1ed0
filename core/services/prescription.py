"""Parse curriculum prescription text into a structured target.

Prescriptions are authored as free text: "3×8 @ moderate",
"3x10, +2.5kg from last session", "4 x 6-8 @ 60kg", "3 x 45s".
Anything the parser does not recognise is left as None; the raw text is
always kept for display.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import re
from typing import Optional

from core.program import AXIS_LOAD, PROGRESSION_AXES

_SETS_REPS = re.compile(
    r"(?P<sets>\d+)\s*[x×X\*]\s*(?P<reps>\d+)(?:\s*[-–]\s*(?P<reps_max>\d+))?(?P<unit>\s*(?:s|sec|secs|seconds|min|mins|minutes)\b)?",
)
_LOAD = re.compile(r"(?<![+\-\d.])(?<![+\-]\s)(?P<load>\d+(?:\.\d+)?)\s*(?:kg|kgs)\b", re.I)
_LOAD_DELTA = re.compile(r"(?P<sign>[+\-])\s*(?P<delta>\d+(?:\.\d+)?)\s*(?:kg|kgs)\b", re.I)
_DURATION = re.compile(r"(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>s|sec|secs|seconds|min|mins|minutes)\b", re.I)
_EFFORT = re.compile(r"@\s*(?P<effort>[a-z][a-z \-]*)", re.I)
_RPE = re.compile(r"\brpe\s*(?P<rpe>\d+(?:\.\d+)?)", re.I)


@dataclass(frozen=True)
class Prescription:
    raw: str
    axis: str = AXIS_LOAD
    sets: Optional[int] = None
    reps: Optional[int] = None
    reps_max: Optional[int] = None
    load_kg: Optional[float] = None
    load_delta_kg: Optional[float] = None  # overrides the configured load increment
    duration_sec: Optional[int] = None
    effort: Optional[str] = None
    target_rpe: Optional[float] = None

    @property
    def is_structured(self) -> bool:
        return any(v is not None for v in (self.sets, self.reps, self.load_kg, self.duration_sec))

    def describe(self) -> str:
        if not self.is_structured:
            return self.raw
        parts: list[str] = []
        if self.sets is not None:
            reps = self.reps if self.reps_max is None else f"{self.reps}-{self.reps_max}"
            if self.duration_sec is not None and self.reps is None:
                parts.append(f"{self.sets}x{self.duration_sec}s")
            else:
                parts.append(f"{self.sets}x{reps}")
        elif self.duration_sec is not None:
            parts.append(f"{self.duration_sec}s")
        if self.load_kg is not None:
            parts.append(f"@ {self.load_kg:g}kg")
        elif self.effort:
            parts.append(f"@ {self.effort}")
        return " ".join(parts)


def _to_seconds(value: float, unit: str) -> int:
    unit = unit.strip().lower()
    if unit.startswith("m"):
        return int(round(value * 60))
    return int(round(value))


def parse_prescription(text: str, axis: str = AXIS_LOAD) -> Prescription:
    """Extract sets/reps/load/duration from prescription text."""
    if axis not in PROGRESSION_AXES:
        raise ValueError(f"unknown progression axis {axis!r}")
    raw = (text or "").strip()
    sets = reps = reps_max = duration = None
    load = delta = None

    m = _SETS_REPS.search(raw)
    if m:
        sets = int(m.group("sets"))
        if m.group("unit"):
            duration = _to_seconds(float(m.group("reps")), m.group("unit"))
        else:
            reps = int(m.group("reps"))
            if m.group("reps_max"):
                reps_max = int(m.group("reps_max"))
    if duration is None and reps is None:
        dm = _DURATION.search(raw)
        if dm:
            duration = _to_seconds(float(dm.group("value")), dm.group("unit"))

    lm = _LOAD.search(raw)
    if lm:
        load = float(lm.group("load"))
    dm = _LOAD_DELTA.search(raw)
    if dm:
        delta = float(dm.group("delta")) * (-1 if dm.group("sign") == "-" else 1)

    effort = None
    em = _EFFORT.search(raw)
    if em:
        effort = em.group("effort").strip().lower() or None
        if effort == "rpe":
            effort = None
    rm = _RPE.search(raw)
    target_rpe = float(rm.group("rpe")) if rm else None

    return Prescription(
        raw=raw,
        axis=axis,
        sets=sets,
        reps=reps,
        reps_max=reps_max,
        load_kg=load,
        load_delta_kg=delta,
        duration_sec=duration,
        effort=effort,
        target_rpe=target_rpe,
    )


def with_baseline(prescription: Prescription, *, load_kg=None, reps=None, duration_sec=None) -> Prescription:
    """Fill in baseline values the curriculum text left unspecified."""
    updates = {}
    if prescription.load_kg is None and load_kg is not None:
        updates["load_kg"] = float(load_kg)
    if prescription.reps is None and reps is not None:
        updates["reps"] = int(reps)
    if prescription.duration_sec is None and duration_sec is not None:
        updates["duration_sec"] = int(duration_sec)
    return replace(prescription, **updates) if updates else prescription

