import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from blobpet.constants import (
    DEFAULT_HUNGER, DEFAULT_ENERGY, DEFAULT_HAPPINESS, DEFAULT_SCALE,
    FOODS, DEFAULT_FOOD, START_POSITION,
)

logger = logging.getLogger(__name__)

NEEDS = ("hunger", "energy", "happiness")


class Mood(Enum):
    HAPPY = "happy"
    HUNGRY = "hungry"
    SLEEPY = "sleepy"
    EXCITED = "excited"
    NEGLECTED = "neglected"


class MouthState(Enum):
    WIDE_OPEN = "wide_open"
    CHEWING = "chewing"
    SMILING = "smiling"
    CLOSED = "closed"
    FROWN = "frown"
    FLAT = "flat"


class Action(Enum):
    """Intents the renderer/gesture layer can hand to BlobEngine.dispatch()."""
    FEED = "feed"
    BOUNCE = "bounce"
    SLEEP = "sleep"
    WAKE = "wake"
    WORKOUT = "workout"
    SPLIT = "split"
    INFLATE = "inflate"
    SHAKE = "shake"
    MOTION = "motion"
    DRAG_START = "drag_start"
    DRAG_MOVE = "drag_move"
    DRAG_END = "drag_end"
    LONG_PRESS = "long_press"


def clamp(value, low=0.0, high=1.0):
    # Rounded so repeated 0.1 steps land on the thresholds they aim for.
    return round(max(low, min(high, value)), 10)


@dataclass
class NeedState:
    """The three bounded drives. Every write goes through adjust() so it stays in [0, 1]."""
    hunger: float = DEFAULT_HUNGER    # 1 = Full, 0 = Starving
    energy: float = DEFAULT_ENERGY
    happiness: float = DEFAULT_HAPPINESS

    def adjust(self, need: str, delta: float) -> float:
        if need not in NEEDS:
            raise KeyError(f"Unknown need '{need}'")
        value = clamp(getattr(self, need) + delta)
        setattr(self, need, value)
        return value

    def as_dict(self):
        return {"hunger": self.hunger, "energy": self.energy, "happiness": self.happiness}


@dataclass
class TransientFlags:
    is_dragging: bool = False
    is_bouncing: bool = False
    is_shaking: bool = False
    is_inflated: bool = False
    is_asleep: bool = False
    is_stretching: bool = False
    show_particles: bool = False
    show_achievement: bool = False


@dataclass
class Motion:
    """Position and velocity of the blob; only the drag behaviour writes here."""
    x: float = START_POSITION[0]
    y: float = START_POSITION[1]
    dx: float = 0.0
    dy: float = 0.0

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def velocity(self) -> Tuple[float, float]:
        return (self.dx, self.dy)


@dataclass
class BlobState:
    """Everything the engine mutates. Owned by a single BlobEngine."""
    needs: NeedState = field(default_factory=NeedState)
    flags: TransientFlags = field(default_factory=TransientFlags)
    motion: Motion = field(default_factory=Motion)
    mood: Mood = Mood.HAPPY
    mouth: MouthState = MouthState.SMILING
    scale: float = DEFAULT_SCALE
    total_feedings: int = 0
    total_bounces: int = 0
    achievements: List[str] = field(default_factory=list)
    latest_achievement: str = ""
    slime_trail: List[Tuple[float, float]] = field(default_factory=list)
    tap_count: int = 0


@dataclass(frozen=True)
class BlobView:
    """Read-only copy of the state handed to renderers and listeners."""
    mood: Mood
    mouth: MouthState
    hunger: float
    energy: float
    happiness: float
    scale: float
    position: Tuple[float, float]
    velocity: Tuple[float, float]
    is_dragging: bool
    is_bouncing: bool
    is_shaking: bool
    is_inflated: bool
    is_asleep: bool
    is_stretching: bool
    show_particles: bool
    show_achievement: bool
    latest_achievement: str
    achievements: Tuple[str, ...]
    slime_trail: Tuple[Tuple[float, float], ...]
    total_feedings: int
    total_bounces: int

    @classmethod
    def from_state(cls, state: BlobState) -> "BlobView":
        flags = state.flags
        return cls(
            mood=state.mood,
            mouth=state.mouth,
            hunger=state.needs.hunger,
            energy=state.needs.energy,
            happiness=state.needs.happiness,
            scale=state.scale,
            position=state.motion.position,
            velocity=state.motion.velocity,
            is_dragging=flags.is_dragging,
            is_bouncing=flags.is_bouncing,
            is_shaking=flags.is_shaking,
            is_inflated=flags.is_inflated,
            is_asleep=flags.is_asleep,
            is_stretching=flags.is_stretching,
            show_particles=flags.show_particles,
            show_achievement=flags.show_achievement,
            latest_achievement=state.latest_achievement,
            achievements=tuple(state.achievements),
            slime_trail=tuple(state.slime_trail),
            total_feedings=state.total_feedings,
            total_bounces=state.total_bounces,
        )


@dataclass(frozen=True)
class FoodEffect:
    food_id: str
    hunger: float
    happiness: float
    energy: float = 0.0


def lookup_food(code: Optional[str]) -> FoodEffect:
    """Resolve a dropped food token (emoji or name) to its effect row.

    Unknown codes get the default row instead of an error.
    """
    if code:
        normalized = code.strip()
        for food in FOODS:
            if normalized == food['emoji'] or normalized.lower() == food['id']:
                return FoodEffect(food['id'], food['hunger'], food['happiness'], food['energy'])
    logger.debug("Unknown food %r, using default effect", code)
    return FoodEffect(DEFAULT_FOOD['id'], DEFAULT_FOOD['hunger'], DEFAULT_FOOD['happiness'], DEFAULT_FOOD['energy'])
