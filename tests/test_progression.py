import pytest

from bot.systems.progression import ProgressionCurve


@pytest.fixture
def curve():
    return ProgressionCurve(100, 1.5)


def test_level_one_is_free(curve):
    assert curve.total_xp_for_level(1) == 0
    assert curve.calculate_level(0) == 1
    assert curve.calculate_level(99) == 1


def test_totals_accumulate(curve):
    assert curve.xp_required_for_level(2) == 100
    assert curve.xp_required_for_level(3) == 150
    assert curve.total_xp_for_level(3) == 250
    assert curve.total_xp_for_level(4) == 475


@pytest.mark.parametrize("xp,level", [(100, 2), (249, 2), (250, 3), (474, 3), (475, 4)])
def test_level_boundaries(curve, xp, level):
    assert curve.calculate_level(xp) == level


def test_level_is_monotonic(curve):
    levels = [curve.calculate_level(xp) for xp in range(0, 20000, 37)]
    assert levels == sorted(levels)


def test_progress_and_needed(curve):
    snap = curve.snapshot(175)
    assert snap.level == 2
    assert snap.progress == 50
    assert snap.xp_needed == 75
    assert snap.current_level_xp == 100
    assert snap.next_level_xp == 250
    for xp in (0, 99, 100, 1000, 12345):
        assert 0 <= curve.get_level_progress(xp) < 100
        assert curve.xp_needed_for_next(xp) > 0


def test_invalid_parameters():
    with pytest.raises(ValueError):
        ProgressionCurve(0, 1.5)
    with pytest.raises(ValueError):
        ProgressionCurve(100, 0.5)


@pytest.mark.parametrize("base,multiplier", [(100, 1.5), (50, 1.2), (250, 2.0)])
def test_level_brackets_every_xp(base, multiplier):
    curve = ProgressionCurve(base, multiplier)
    for xp in range(0, 30000, 7):
        level = curve.calculate_level(xp)
        assert curve.total_xp_for_level(level) <= xp < curve.total_xp_for_level(level + 1)


@pytest.mark.parametrize("xp", [100, 250, 475])
def test_progress_resets_at_level_up(curve, xp):
    assert curve.get_level_progress(xp) == 0
    assert curve.get_level_progress(xp - 1) > curve.get_level_progress(xp)


def test_progress_never_drops_within_a_level(curve):
    for level in range(1, 15):
        start, end = curve.total_xp_for_level(level), curve.total_xp_for_level(level + 1)
        progress = [curve.get_level_progress(xp) for xp in range(start, end)]
        assert progress[0] == 0
        assert progress == sorted(progress)
        assert progress[-1] < 100
