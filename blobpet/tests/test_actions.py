import pytest

from blobpet.blob_entity import BlobEngine
from blobpet.models import Action, Mood, MouthState


def make_engine(hunger=None, energy=None, happiness=None, **kwargs):
    messages = []
    engine = BlobEngine(message_callback=messages.append, **kwargs)
    engine.start()
    needs = engine.state.needs
    if hunger is not None:
        needs.hunger = hunger
    if energy is not None:
        needs.energy = energy
    if happiness is not None:
        needs.happiness = happiness
    engine.update_mood()
    engine.messages = messages
    return engine


def test_feed_apple():
    engine = make_engine(hunger=0.5)
    assert engine.feed("🍎") is True
    needs = engine.state.needs
    assert needs.hunger == pytest.approx(0.8)
    assert needs.happiness == pytest.approx(0.8)
    assert needs.energy == pytest.approx(0.8)
    assert engine.state.total_feedings == 1
    assert "First Meal" in engine.state.achievements
    assert engine.store.data["TotalFeedings"] == 1


def test_feed_by_name_and_unknown_food():
    engine = make_engine()
    engine.feed("cake")
    assert engine.state.needs.hunger == pytest.approx(0.9)
    assert engine.state.needs.happiness == pytest.approx(1.0)
    assert engine.state.needs.energy == pytest.approx(0.7)

    engine = make_engine()
    engine.feed("🍓")
    assert engine.state.needs.hunger == pytest.approx(0.7)
    assert engine.state.needs.happiness == pytest.approx(0.8)
    assert engine.state.total_feedings == 1


def test_feed_mouth_sequence_and_growth():
    engine = make_engine()
    engine.feed("🍪")
    assert engine.state.mouth == MouthState.WIDE_OPEN
    engine.tick(0.3)
    assert engine.state.mouth == MouthState.CHEWING
    engine.tick(0.7)
    assert engine.state.mouth == MouthState.SMILING
    assert engine.state.scale == pytest.approx(1.05)
    assert engine.state.flags.show_particles is True
    engine.tick(1.0)
    assert engine.state.flags.show_particles is False
    assert engine.state.mouth == MouthState.SMILING  # happy default
    assert engine.store.data["BlobScale"] == pytest.approx(1.05)


def test_feed_returns_hungry_mouth_to_frown_default():
    engine = make_engine(hunger=0.0)
    engine.feed("🍇")
    assert engine.state.mood == Mood.HUNGRY
    assert engine.state.mouth == MouthState.WIDE_OPEN
    engine.tick(2.0)
    assert engine.state.mouth == MouthState.FROWN


def test_scale_growth_caps_at_max():
    engine = make_engine()
    engine.state.scale = 1.48
    engine.feed()
    engine.tick(1.0)
    assert engine.state.scale == 1.5


def test_cannot_feed_sleeping_blob():
    engine = make_engine()
    engine.go_to_sleep()
    assert engine.feed("🍎") is False
    assert engine.state.total_feedings == 0
    assert engine.state.needs.hunger == pytest.approx(0.5)


def test_five_quick_bounces_trigger_one_workout():
    engine = make_engine()
    for _ in range(4):
        assert engine.bounce() is True
        engine.tick(0.5)
    assert engine.state.tap_count == 4
    assert engine.state.total_bounces == 4

    engine.bounce()
    workouts = [m for m in engine.messages if "workout" in m]
    assert len(workouts) == 1
    assert engine.state.tap_count == 0
    assert engine.state.total_bounces == 4
    assert engine.state.needs.energy == pytest.approx(1.0)
    assert engine.state.needs.hunger == pytest.approx(0.4)
    assert engine.state.flags.is_bouncing is True
    engine.tick(0.5)
    assert engine.state.flags.is_bouncing is False

    engine.tick(3.5)
    engine.bounce()
    assert engine.state.tap_count == 1
    assert engine.state.total_bounces == 5


def test_tap_counter_resets_after_idle_timeout():
    engine = make_engine()
    for _ in range(3):
        engine.bounce()
    engine.tick(3.0)
    assert engine.state.tap_count == 0
    for _ in range(4):
        engine.bounce()
    assert engine.state.tap_count == 4
    assert not [m for m in engine.messages if "workout" in m]


def test_bounce_effects():
    engine = make_engine(happiness=0.5)
    engine.bounce()
    assert engine.state.flags.is_bouncing is True
    assert engine.state.needs.happiness == pytest.approx(0.6)
    assert "First Bounce" in engine.state.achievements
    engine.tick(0.3)
    assert engine.state.flags.is_bouncing is False


def test_bounce_wakes_sleeping_blob():
    engine = make_engine()
    engine.go_to_sleep()
    assert engine.bounce() is False
    assert engine.state.flags.is_asleep is False
    assert engine.state.total_bounces == 0
    assert engine.state.tap_count == 0
    assert not engine.scheduler.is_scheduled("sleep-restore")


def test_sleep_restores_energy_then_wakes():
    engine = make_engine(energy=0.5)
    engine.go_to_sleep()
    assert engine.state.flags.is_asleep is True
    assert engine.state.mouth == MouthState.CLOSED
    engine.tick(5.0)
    assert engine.state.needs.energy == pytest.approx(0.6)
    engine.tick(5.0)
    assert engine.state.flags.is_asleep is True
    engine.tick(5.0)
    assert engine.state.needs.energy == pytest.approx(0.8)
    assert engine.state.flags.is_asleep is False
    assert not engine.scheduler.is_scheduled("sleep-restore")
    assert engine.state.mouth == MouthState.SMILING
    assert any("woke up" in m for m in engine.messages)


def test_going_to_sleep_twice_keeps_one_timer():
    engine = make_engine(energy=0.2)
    engine.go_to_sleep()
    engine.tick(3.0)
    assert engine.go_to_sleep() is False
    engine.tick(2.0)
    assert engine.state.needs.energy == pytest.approx(0.3)


def test_wake_up_when_awake_is_a_no_op():
    engine = make_engine()
    needs_before = engine.state.needs.as_dict()
    flags_before = engine.state.flags
    flags_copy = type(flags_before)(**vars(flags_before))
    assert engine.wake_up() is False
    assert engine.state.needs.as_dict() == needs_before
    assert engine.state.flags == flags_copy


def test_workout_refused_while_asleep():
    engine = make_engine()
    engine.go_to_sleep()
    assert engine.mini_workout() is False
    assert engine.state.needs.energy == pytest.approx(0.8)


def test_split_and_restore():
    engine = make_engine()
    engine.split()
    assert engine.state.scale == pytest.approx(0.7)
    assert engine.state.needs.happiness == pytest.approx(0.85)
    engine.tick(1.0)
    assert engine.state.scale == pytest.approx(1.0)


def test_inflate_and_restore():
    engine = make_engine()
    engine.inflate()
    assert engine.state.flags.is_inflated is True
    assert engine.state.needs.happiness == pytest.approx(0.8)
    engine.tick(1.9)
    assert engine.state.flags.is_inflated is True
    engine.tick(0.1)
    assert engine.state.flags.is_inflated is False


def test_long_press_variants():
    engine = make_engine()
    engine.long_press()
    assert engine.state.flags.is_inflated is True

    engine = make_engine(long_press_action="sleep")
    engine.long_press()
    assert engine.state.flags.is_asleep is True


def test_shake_needs_a_strong_sample():
    engine = make_engine()
    assert engine.sense_motion(1.0, 1.0, 1.0) is False
    assert engine.state.flags.is_shaking is False

    assert engine.sense_motion(2.0, 1.0, 0.0) is True
    assert engine.state.mood == Mood.EXCITED
    assert engine.state.needs.happiness == pytest.approx(0.9)
    # already shaking
    assert engine.sense_motion(3.0, 0.0, 0.0) is False
    assert engine.state.needs.happiness == pytest.approx(0.9)

    engine.tick(2.0)
    assert engine.state.flags.is_shaking is False
    assert engine.state.mood == Mood.HAPPY


def test_drag_tracks_velocity_and_reflects_off_edges():
    engine = make_engine()
    engine.start_dragging((100, 100))
    assert engine.state.flags.is_dragging is True
    assert engine.state.flags.is_stretching is True
    engine.tick(0.5)
    engine.drag_to((10, 50))
    assert engine.state.motion.velocity == (pytest.approx(-180.0), pytest.approx(-100.0))

    engine.end_dragging((480, 800))
    motion = engine.state.motion
    assert motion.position == (60.0, 60.0)
    assert motion.dx == pytest.approx(144.0)
    assert motion.dy == pytest.approx(80.0)
    assert engine.state.flags.is_dragging is False
    assert engine.state.flags.is_stretching is False
    assert engine.state.needs.happiness == pytest.approx(0.8)


def test_drag_inside_bounds_keeps_position():
    engine = make_engine()
    engine.start_dragging((200, 300))
    engine.end_dragging((480, 800))
    assert engine.state.motion.position == (200.0, 300.0)


def test_slime_trail_is_capped_and_fades():
    engine = make_engine()
    engine.start_dragging((99, 200))
    for i in range(25):
        engine.drag_to((100 + i, 200))
    trail = engine.state.slime_trail
    assert len(trail) == 20
    assert trail[-1] == (124.0, 200.0)
    engine.end_dragging()
    engine.tick(1.9)
    assert len(engine.state.slime_trail) == 20
    engine.tick(0.1)
    assert engine.state.slime_trail == []


def test_drag_move_without_active_drag_is_ignored():
    engine = make_engine()
    assert engine.drag_to((150, 250)) is False
    assert engine.state.flags.is_dragging is False
    assert engine.state.slime_trail == []
    assert engine.state.motion.position == (200.0, 400.0)


def test_cannot_drag_sleeping_blob():
    engine = make_engine()
    engine.go_to_sleep()
    assert engine.start_dragging((10, 10)) is False
    assert engine.state.flags.is_dragging is False


def test_dispatch_by_enum_and_string():
    engine = make_engine()
    engine.dispatch(Action.FEED, "🍌")
    engine.dispatch("split")
    engine.dispatch("drag_start", (150, 150))
    assert engine.state.total_feedings == 1
    assert engine.state.scale == pytest.approx(0.7)
    assert engine.state.flags.is_dragging is True
    with pytest.raises(ValueError):
        engine.dispatch("dance")


def test_listeners_receive_views():
    engine = make_engine()
    views = []
    unsubscribe = engine.subscribe(views.append)
    engine.bounce()
    assert views and views[-1].is_bouncing is True
    assert views[-1].total_bounces == 1
    engine.tick(0.3)
    assert views[-1].is_bouncing is False
    unsubscribe()
    count = len(views)
    engine.bounce()
    assert len(views) == count


def test_low_need_warnings_fire_once():
    engine = make_engine(hunger=0.35)
    engine.tick(30.0)
    engine.tick(30.0)
    hungry = [m for m in engine.messages if "hungry" in m]
    assert len(hungry) == 1
