"""Core raffle engine: pool, selector, reel builder and draw state machine."""

from .machine import DrawState, DrawStateMachine, Renderer, Spin
from .participant import (
    Participant,
    make_display_name,
    normalize_display_name,
    participant_key,
)
from .pool import ParticipantPool
from .reel import ReelPlan, build_reel_plan, ease_out
from .selector import secure_pick

__all__ = [
    "DrawState",
    "DrawStateMachine",
    "Participant",
    "ParticipantPool",
    "ReelPlan",
    "Renderer",
    "Spin",
    "build_reel_plan",
    "ease_out",
    "make_display_name",
    "normalize_display_name",
    "participant_key",
    "secure_pick",
]
