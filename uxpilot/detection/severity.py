"""Priority lookup for verified issues the detector returned without a valid tier."""

from __future__ import annotations

from uxpilot.investigation.models import Priority

# (min events, min % sessions affected): exceeding either assigns the tier
_THRESHOLDS: list[tuple[Priority, int, float]] = [
    (Priority.P1, 20, 30.0),
    (Priority.P2, 5, 20.0),
]
_P0_EVENTS = 50
_P0_PERCENT = 50.0

_ORDER = [Priority.P3, Priority.P2, Priority.P1, Priority.P0]


def classify_severity(
    count: int,
    percent_affected: float = 0.0,
    multiple_signals: bool = False,
) -> Priority:
    """Map an event count and affected share to a priority tier.

    ``multiple_signals`` means the same URL shows both dead and rage clicks,
    which bumps the result one tier.
    """
    if count > _P0_EVENTS or (percent_affected > _P0_PERCENT and multiple_signals):
        return Priority.P0

    priority = Priority.P3
    for tier, events, percent in _THRESHOLDS:
        if count > events or percent_affected > percent:
            priority = tier
            break

    if multiple_signals:
        priority = _ORDER[min(_ORDER.index(priority) + 1, len(_ORDER) - 1)]
    return priority
