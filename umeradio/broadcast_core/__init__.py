"""
Broadcast core.

Scheduling state machine, playout loop and the decode pipeline.
"""

from .audio_event import AudioEvent
from .state_machine import PlaybackPhase, PlaybackState, PlaybackStateMachine

__all__ = [
    "AudioEvent",
    "PlaybackPhase",
    "PlaybackState",
    "PlaybackStateMachine",
]
