import pytest

from blobpet.blob_entity import BlobEngine
from blobpet.models import NeedState


def test_adjust_always_stays_in_range():
    for need in ("hunger", "energy", "happiness"):
        for delta in (-1000.0, -1.0, -0.35, -0.0, 0.05, 0.4, 1.0, 1e9):
            needs = NeedState()
            result = needs.adjust(need, delta)
            assert 0.0 <= result <= 1.0
            assert getattr(needs, need) == result


def test_adjust_adds_delta_when_in_bounds():
    needs = NeedState(hunger=0.5, energy=0.8, happiness=0.7)
    assert needs.adjust("hunger", 0.3) == pytest.approx(0.8)
    assert needs.adjust("energy", -0.05) == pytest.approx(0.75)
    assert needs.happiness == 0.7


def test_adjust_unknown_need_raises():
    with pytest.raises(KeyError):
        NeedState().adjust("thirst", 0.1)


def test_hunger_and_energy_decay_on_their_own_periods():
    engine = BlobEngine()
    engine.start()
    engine.tick(29.9)
    assert engine.state.needs.hunger == pytest.approx(0.5)
    engine.tick(0.1)
    assert engine.state.needs.hunger == pytest.approx(0.4)
    assert engine.state.needs.energy == pytest.approx(0.8)
    engine.tick(15.0)
    assert engine.state.needs.energy == pytest.approx(0.75)
    engine.tick(45.0)
    # t=90: three hunger ticks, two energy ticks
    assert engine.state.needs.hunger == pytest.approx(0.2)
    assert engine.state.needs.energy == pytest.approx(0.7)
    assert engine.state.needs.happiness == pytest.approx(0.7)


def test_decay_bottoms_out_at_zero_and_saves():
    engine = BlobEngine()
    engine.start()
    engine.tick(30.0 * 12)
    assert engine.state.needs.hunger == 0.0
    assert engine.store.data["BlobHunger"] == 0.0
