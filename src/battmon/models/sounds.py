"""
Sound Cues
==========

Fixed set of sound assets the alert policy can request.

Each cue maps to exactly one file in the configured sound directory.
Percent milestones have their own cues; MILESTONE_CUES is the lookup used
by the announcer.
"""

from enum import Enum
from typing import Dict


class SoundCue(str, Enum):
    """
    Sound files requested from the host player.

    Attributes:
        BAT_5 .. BAT_90: Percent-remaining milestones
        BAT_EMPTY: Battery exhausted (at or below 0%)
        NOT_FULL: Battery not fully charged at reset
        INCONSISTENT_CELL: Cell voltages differ by more than the delta
        MISSING_CELL: Fewer cells reported than configured
        CRASH, AMBULANCE: Optional extra cues when the pack is empty
    """

    BAT_5 = "Bat5L.wav"
    BAT_10 = "Bat10L.wav"
    BAT_20 = "Bat20L.wav"
    BAT_30 = "Bat30L.wav"
    BAT_40 = "Bat40L.wav"
    BAT_50 = "Bat50L.wav"
    BAT_60 = "Bat60L.wav"
    BAT_70 = "Bat70L.wav"
    BAT_80 = "Bat80L.wav"
    BAT_90 = "Bat90L.wav"

    BAT_EMPTY = "BatNo.wav"
    NOT_FULL = "BNFull.wav"
    INCONSISTENT_CELL = "icw.wav"
    MISSING_CELL = "mcw.wav"

    CRASH = "Scrash.wav"
    AMBULANCE = "Samblc.wav"


MILESTONE_CUES: Dict[int, SoundCue] = {
    5: SoundCue.BAT_5,
    10: SoundCue.BAT_10,
    20: SoundCue.BAT_20,
    30: SoundCue.BAT_30,
    40: SoundCue.BAT_40,
    50: SoundCue.BAT_50,
    60: SoundCue.BAT_60,
    70: SoundCue.BAT_70,
    80: SoundCue.BAT_80,
    90: SoundCue.BAT_90,
}


def sound_path(sound_dir: str, cue: SoundCue) -> str:
    """Join the sound directory and a cue file name."""
    if sound_dir and not sound_dir.endswith("/"):
        sound_dir += "/"
    return f"{sound_dir}{cue.value}"
