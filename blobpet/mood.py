from blobpet.constants import (
    NEGLECT_HUNGER, NEGLECT_ENERGY, NEGLECT_HAPPINESS,
    HUNGRY_BELOW, SLEEPY_BELOW, VERY_HAPPY_ABOVE,
)
from blobpet.models import Mood, MouthState, NeedState

DEFAULT_MOUTH = {
    Mood.HAPPY: MouthState.SMILING,
    Mood.HUNGRY: MouthState.FROWN,
    Mood.SLEEPY: MouthState.FLAT,
    Mood.EXCITED: MouthState.WIDE_OPEN,
    Mood.NEGLECTED: MouthState.FLAT,
}


def resolve_mood(needs: NeedState, is_shaking: bool = False) -> Mood:
    """Map needs and the shaking flag to a mood. First matching rule wins."""
    if is_shaking:
        return Mood.EXCITED
    if (needs.hunger < NEGLECT_HUNGER and needs.energy < NEGLECT_ENERGY
            and needs.happiness < NEGLECT_HAPPINESS):
        return Mood.NEGLECTED
    if needs.hunger < HUNGRY_BELOW:
        return Mood.HUNGRY
    if needs.energy < SLEEPY_BELOW:
        return Mood.SLEEPY
    if needs.happiness > VERY_HAPPY_ABOVE:
        # Same outcome as the fallback below; kept as its own rule.
        return Mood.HAPPY
    return Mood.HAPPY


def default_mouth(mood: Mood) -> MouthState:
    return DEFAULT_MOUTH[mood]
