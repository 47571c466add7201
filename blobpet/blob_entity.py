import math
import sqlite3
import logging
from typing import Callable, List, Optional, Tuple

from blobpet.constants import *
from blobpet.models import Action, BlobState, BlobView, MouthState, clamp, lookup_food
from blobpet.mood import resolve_mood, default_mouth
from blobpet.scheduler import Scheduler
from blobpet.achievements import AchievementTracker
from blobpet.database import MemoryStore

logger = logging.getLogger(__name__)


class BlobEngine:
    """Runs the blob simulation: needs, mood, actions, timers and persistence.

    All mutation happens on the caller's thread, through dispatch() (or the
    action methods directly) and tick(dt). Listeners registered with
    subscribe() receive a BlobView after every change.
    """

    def __init__(self, store=None, name="Blob", message_callback=None,
                 viewport=(SCREEN_WIDTH, SCREEN_HEIGHT), long_press_action=LONG_PRESS_ACTION):
        self.name = name
        self.store = store if store is not None else MemoryStore()
        self.message_callback = message_callback
        self.viewport = viewport
        self.long_press_action = long_press_action

        self.state = BlobState()
        self.scheduler = Scheduler()
        self.achievements = AchievementTracker(self.state.achievements)
        self.listeners: List[Callable[[BlobView], None]] = []
        self.started = False
        self._last_drag_time: Optional[float] = None

        # For tracking previous needs to trigger low-need messages once
        self.prev_hunger = self.state.needs.hunger
        self.prev_energy = self.state.needs.energy

        self._timer_handlers = {
            "hunger-decay": self._on_hunger_decay,
            "energy-decay": self._on_energy_decay,
            "feed-chew": self._on_feed_chew,
            "feed-smile": self._on_feed_smile,
            "feed-settle": self._on_feed_settle,
            "bounce-settle": self._on_bounce_settle,
            "tap-idle": self._on_tap_idle,
            "sleep-restore": self._on_sleep_restore,
            "split-restore": self._on_split_restore,
            "inflate-restore": self._on_inflate_restore,
            "shake-settle": self._on_shake_settle,
            "trail-fade": self._on_trail_fade,
            "achievement-popup": self._on_achievement_popup,
        }
        self._actions = {
            Action.FEED: self.feed,
            Action.BOUNCE: self.bounce,
            Action.SLEEP: self.go_to_sleep,
            Action.WAKE: self.wake_up,
            Action.WORKOUT: self.mini_workout,
            Action.SPLIT: self.split,
            Action.INFLATE: self.inflate,
            Action.SHAKE: self.shake,
            Action.MOTION: self.sense_motion,
            Action.DRAG_START: self.start_dragging,
            Action.DRAG_MOVE: self.drag_to,
            Action.DRAG_END: self.end_dragging,
            Action.LONG_PRESS: self.long_press,
        }

    # ------------------------------------------------------------------
    # Lifecycle

    def start(self):
        """Load the saved snapshot and start the decay timers."""
        if self.started:
            return
        self.load()
        self.scheduler.schedule_repeating(HUNGER_DECAY_INTERVAL, "hunger-decay")
        self.scheduler.schedule_repeating(ENERGY_DECAY_INTERVAL, "energy-decay")
        self.started = True
        self._message(f"Welcome back! {self.name} is feeling {self.state.mood.value}.")
        self._commit(save=False)

    def stop(self):
        """Cancel every timer and write the final snapshot."""
        self.scheduler.cancel_all()
        self.achievements.popups.clear()
        self.state.flags.show_achievement = False
        self.started = False
        self.save()

    def tick(self, dt: float):
        """Advance simulation time by dt, running every timer that comes due."""
        for token in self.scheduler.advance(dt):
            self._timer_handlers[token]()

    def dispatch(self, action, *args, **kwargs):
        """Run a named action. Accepts an Action or its string value."""
        if not isinstance(action, Action):
            action = Action(action)
        return self._actions[action](*args, **kwargs)

    def subscribe(self, listener: Callable[[BlobView], None]):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    def view(self) -> BlobView:
        return BlobView.from_state(self.state)

    def snapshot(self) -> dict:
        """The persisted subset of the state, keyed the way the store expects."""
        state = self.state
        return {
            KEY_HUNGER: state.needs.hunger,
            KEY_ENERGY: state.needs.energy,
            KEY_HAPPINESS: state.needs.happiness,
            KEY_SCALE: state.scale,
            KEY_TOTAL_FEEDINGS: state.total_feedings,
            KEY_TOTAL_BOUNCES: state.total_bounces,
            KEY_ACHIEVEMENTS: list(state.achievements),
        }

    # ------------------------------------------------------------------
    # Persistence

    def load(self):
        """Fetches the snapshot from the store and initializes state.

        Zero or missing floats load as their defaults, which means an
        explicit 0.0 cannot survive a restart. Malformed values fall back
        to defaults too.
        """
        try:
            data = self.store.load()
        except (sqlite3.Error, OSError) as e:
            logger.warning("Error loading blob: %s. Starting fresh.", e)
            data = {}

        def get_float(key, default):
            try:
                value = float(data.get(key) or 0.0)
            except (TypeError, ValueError):
                logger.warning("Bad value for %s: %r", key, data.get(key))
                return default
            if value == 0.0 or math.isnan(value):
                return default
            return value

        def get_int(key):
            try:
                return max(0, int(data.get(key) or 0))
            except (TypeError, ValueError, OverflowError):
                logger.warning("Bad value for %s: %r", key, data.get(key))
                return 0

        needs = self.state.needs
        needs.hunger = clamp(get_float(KEY_HUNGER, DEFAULT_HUNGER))
        needs.energy = clamp(get_float(KEY_ENERGY, DEFAULT_ENERGY))
        needs.happiness = clamp(get_float(KEY_HAPPINESS, DEFAULT_HAPPINESS))
        self.state.scale = clamp(get_float(KEY_SCALE, DEFAULT_SCALE), 0.0, MAX_SCALE)
        self.state.total_feedings = get_int(KEY_TOTAL_FEEDINGS)
        self.state.total_bounces = get_int(KEY_TOTAL_BOUNCES)

        saved = data.get(KEY_ACHIEVEMENTS) or []
        if not isinstance(saved, list):
            logger.warning("Bad value for %s: %r", KEY_ACHIEVEMENTS, saved)
            saved = []
        # Mutate in place: the tracker holds the same list.
        self.state.achievements[:] = [str(a) for a in saved]

        self.prev_hunger = needs.hunger
        self.prev_energy = needs.energy
        self.update_mood()

    def save(self):
        """Writes the snapshot. Failures are logged and otherwise ignored."""
        try:
            self.store.save(self.snapshot())
        except (sqlite3.Error, OSError, TypeError, ValueError) as e:
            logger.warning("Failed to save blob state: %s", e)

    # ------------------------------------------------------------------
    # Mood and bookkeeping

    def update_mood(self):
        old = self.state.mood
        self.state.mood = resolve_mood(self.state.needs, self.state.flags.is_shaking)
        if self.state.mood != old:
            logger.info("%s mood %s -> %s", self.name, old.value, self.state.mood.value)
        if not self._mouth_held():
            self.state.mouth = default_mouth(self.state.mood)

    def _mouth_held(self):
        # Sleeping and the feeding sequence own the mouth until they finish.
        return self.state.flags.is_asleep or self.scheduler.is_scheduled("feed-settle")

    def _set_mouth(self, mouth: MouthState):
        if not self.state.flags.is_asleep:
            self.state.mouth = mouth

    def _message(self, text):
        if self.message_callback:
            self.message_callback(text)

    def _check_needs(self):
        needs = self.state.needs
        if needs.hunger < WARN_HUNGRY_BELOW <= self.prev_hunger:
            self._message(f"{self.name} is feeling very hungry!")
        if needs.energy < WARN_TIRED_BELOW <= self.prev_energy:
            self._message(f"{self.name} is very tired.")
        self.prev_hunger = needs.hunger
        self.prev_energy = needs.energy

    def _check_achievements(self):
        state = self.state
        new = self.achievements.evaluate({
            'total_feedings': state.total_feedings,
            'total_bounces': state.total_bounces,
            'happiness': state.needs.happiness,
            'scale': state.scale,
        })
        if not new:
            return new
        for name in new:
            self._message(f"Achievement unlocked: {name}!")
        if not state.flags.show_achievement:
            self._show_next_popup()
        self.save()
        return new

    def _show_next_popup(self):
        name = self.achievements.next_popup()
        if name is None:
            self.state.flags.show_achievement = False
            return
        self.state.latest_achievement = name
        self.state.flags.show_achievement = True
        self.scheduler.schedule_once(ACHIEVEMENT_POPUP_DURATION, "achievement-popup")

    def _commit(self, save=True):
        self.update_mood()
        self._check_needs()
        if save:
            self.save()
        view = self.view()
        for listener in list(self.listeners):
            listener(view)

    # ------------------------------------------------------------------
    # Actions

    def feed(self, food: Optional[str] = None) -> bool:
        if self.state.flags.is_asleep:
            logger.info("%s is asleep and won't eat", self.name)
            return False
        effect = lookup_food(food)
        needs = self.state.needs
        needs.adjust("hunger", effect.hunger)
        needs.adjust("happiness", effect.happiness)
        needs.adjust("energy", effect.energy)
        self.state.total_feedings += 1

        self.scheduler.schedule_once(FEED_CHEW_DELAY, "feed-chew")
        self.scheduler.schedule_once(FEED_SMILE_DELAY, "feed-smile")
        self.scheduler.schedule_once(FEED_SETTLE_DELAY, "feed-settle")
        self._set_mouth(MouthState.WIDE_OPEN)

        logger.info("%s ate %s", self.name, effect.food_id)
        self._check_achievements()
        self._commit()
        return True

    def bounce(self) -> bool:
        """Tap on the blob. Wakes it if asleep; every fifth quick tap is a workout."""
        flags = self.state.flags
        if flags.is_asleep:
            self.wake_up()
            return False

        self.state.tap_count += 1
        if self.state.tap_count >= TAPS_FOR_WORKOUT:
            self.state.tap_count = 0
            self.scheduler.cancel("tap-idle")
            return self.mini_workout()
        self.scheduler.schedule_once(TAP_IDLE_TIMEOUT, "tap-idle")

        flags.is_bouncing = True
        self.scheduler.schedule_once(BOUNCE_DURATION, "bounce-settle")
        self.state.needs.adjust("happiness", BOUNCE_HAPPINESS)
        self.state.total_bounces += 1
        self._check_achievements()
        self._commit()
        return True

    def mini_workout(self) -> bool:
        flags = self.state.flags
        if flags.is_asleep:
            return False
        needs = self.state.needs
        needs.adjust("energy", WORKOUT_ENERGY)
        needs.adjust("hunger", -WORKOUT_HUNGER_COST)
        flags.is_bouncing = True
        self.scheduler.schedule_once(WORKOUT_DURATION, "bounce-settle")
        self._message(f"{self.name} did a mini workout!")
        self._commit()
        return True

    def go_to_sleep(self) -> bool:
        flags = self.state.flags
        if flags.is_asleep:
            return False
        flags.is_asleep = True
        self.state.mouth = MouthState.CLOSED
        self.state.tap_count = 0
        self.scheduler.cancel("tap-idle")
        self.scheduler.schedule_repeating(SLEEP_TICK_INTERVAL, "sleep-restore")
        self._message(f"{self.name} is now fast asleep.")
        self._commit()
        return True

    def wake_up(self) -> bool:
        flags = self.state.flags
        if not flags.is_asleep:
            return False
        flags.is_asleep = False
        self.scheduler.cancel("sleep-restore")
        self._message(f"{self.name} woke up! Good morning!")
        self._commit()
        return True

    def split(self):
        self.state.scale = SPLIT_SCALE
        self.state.needs.adjust("happiness", SPLIT_HAPPINESS)
        self.scheduler.schedule_once(SPLIT_DURATION, "split-restore")
        self._check_achievements()
        self._commit()
        return True

    def inflate(self):
        self.state.flags.is_inflated = True
        self.state.needs.adjust("happiness", INFLATE_HAPPINESS)
        self.scheduler.schedule_once(INFLATE_DURATION, "inflate-restore")
        self._check_achievements()
        self._commit()
        return True

    def long_press(self):
        if self.long_press_action == "sleep":
            return self.go_to_sleep()
        return self.inflate()

    def sense_motion(self, x: float, y: float, z: float) -> bool:
        """Feed one accelerometer sample; a hard enough shake excites the blob."""
        magnitude = math.sqrt(x * x + y * y + z * z)
        if magnitude > SHAKE_THRESHOLD:
            return self.shake()
        return False

    def shake(self) -> bool:
        flags = self.state.flags
        if flags.is_shaking:
            return False
        flags.is_shaking = True
        self.state.needs.adjust("happiness", SHAKE_HAPPINESS)
        self.scheduler.schedule_once(SHAKE_DURATION, "shake-settle")
        self._check_achievements()
        self._commit()
        return True

    def start_dragging(self, point: Tuple[float, float]) -> bool:
        flags = self.state.flags
        if flags.is_asleep:
            return False
        motion = self.state.motion
        now = self.scheduler.now
        x, y = float(point[0]), float(point[1])
        if flags.is_dragging and self._last_drag_time is not None and now > self._last_drag_time:
            elapsed = now - self._last_drag_time
            motion.dx = (x - motion.x) / elapsed
            motion.dy = (y - motion.y) / elapsed
        elif not flags.is_dragging:
            motion.dx = motion.dy = 0.0
        self._last_drag_time = now

        flags.is_dragging = True
        flags.is_stretching = True
        motion.x, motion.y = x, y
        self.scheduler.cancel("trail-fade")
        trail = self.state.slime_trail
        trail.append((x, y))
        del trail[:-SLIME_TRAIL_LENGTH]

        self.state.needs.adjust("happiness", DRAG_HAPPINESS)
        self._check_achievements()
        self._commit()
        return True

    def drag_to(self, point: Tuple[float, float]) -> bool:
        if not self.state.flags.is_dragging:
            return False
        return self.start_dragging(point)

    def end_dragging(self, bounds: Optional[Tuple[float, float]] = None) -> bool:
        """Let go of the blob, pulling it back inside bounds (width, height)."""
        flags = self.state.flags
        flags.is_dragging = False
        flags.is_stretching = False
        self._last_drag_time = None

        width, height = bounds if bounds is not None else self.viewport
        motion = self.state.motion
        if motion.x < BLOB_MARGIN:
            motion.x = BLOB_MARGIN
            motion.dx = abs(motion.dx) * BOUNCE_DAMPING
        elif motion.x > width - BLOB_MARGIN:
            motion.x = width - BLOB_MARGIN
            motion.dx = -abs(motion.dx) * BOUNCE_DAMPING
        if motion.y < BLOB_MARGIN:
            motion.y = BLOB_MARGIN
            motion.dy = abs(motion.dy) * BOUNCE_DAMPING
        elif motion.y > height - BLOB_MARGIN:
            motion.y = height - BLOB_MARGIN
            motion.dy = -abs(motion.dy) * BOUNCE_DAMPING

        self.scheduler.schedule_once(SLIME_TRAIL_FADE, "trail-fade")
        self._commit(save=False)
        return True

    # ------------------------------------------------------------------
    # Timer callbacks

    def _on_hunger_decay(self):
        self.state.needs.adjust("hunger", -HUNGER_DECAY_AMOUNT)
        self._commit()

    def _on_energy_decay(self):
        self.state.needs.adjust("energy", -ENERGY_DECAY_AMOUNT)
        self._commit()

    def _on_feed_chew(self):
        self._set_mouth(MouthState.CHEWING)
        self._commit(save=False)

    def _on_feed_smile(self):
        self._set_mouth(MouthState.SMILING)
        self.state.scale = min(MAX_SCALE, round(self.state.scale + FEED_SCALE_STEP, 10))
        self.state.flags.show_particles = True
        self._check_achievements()
        self._commit()

    def _on_feed_settle(self):
        self.state.flags.show_particles = False
        self._commit(save=False)

    def _on_bounce_settle(self):
        self.state.flags.is_bouncing = False
        self._commit(save=False)

    def _on_tap_idle(self):
        self.state.tap_count = 0

    def _on_sleep_restore(self):
        energy = self.state.needs.adjust("energy", SLEEP_ENERGY_STEP)
        if energy >= WAKE_ENERGY:
            self.wake_up()
        else:
            self._commit()

    def _on_split_restore(self):
        self.state.scale = DEFAULT_SCALE
        self._commit()

    def _on_inflate_restore(self):
        self.state.flags.is_inflated = False
        self._commit(save=False)

    def _on_shake_settle(self):
        self.state.flags.is_shaking = False
        self._commit(save=False)

    def _on_trail_fade(self):
        self.state.slime_trail.clear()
        self._commit(save=False)

    def _on_achievement_popup(self):
        self._show_next_popup()
        self._commit(save=False)
