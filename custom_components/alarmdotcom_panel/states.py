"""Mapping of Alarm.com partition state codes to local states."""

from __future__ import annotations

from dataclasses import dataclass

from .models import CoarseState, LocalState


@dataclass(frozen=True, slots=True)
class MappedState:
    """Local and coarse state derived from a known remote code."""

    local: LocalState
    coarse: CoarseState


@dataclass(frozen=True, slots=True)
class Unmapped:
    """A remote code with no local meaning (unknown or transient)."""

    raw_code: object


STATE_MAP: dict[int, MappedState] = {
    1: MappedState(LocalState.DISARMED, CoarseState.DISARMED),
    2: MappedState(LocalState.ARMED_STAY, CoarseState.PARTIALLY_ARMED),
    3: MappedState(LocalState.ARMED_AWAY, CoarseState.ARMED),
    4: MappedState(LocalState.ARMED_NIGHT, CoarseState.PARTIALLY_ARMED),
}


def map_state(code: object) -> MappedState | Unmapped:
    """Map a raw partition state code.

    Code 0 (unknown), transient codes such as 8 (arming) and anything that
    is not an integer are returned as Unmapped so the caller keeps the last
    stable state.
    """
    if isinstance(code, bool) or not isinstance(code, int):
        return Unmapped(code)
    return STATE_MAP.get(code, Unmapped(code))
