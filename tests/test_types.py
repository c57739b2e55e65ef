import pytest

from ttc_fusion.types import (
    FeatureCorrespondence,
    PreconditionViolation,
    Rect,
    TimestampError,
    assert_non_decreasing,
    check_correspondence_bounds,
    require,
)


class TestRect:
    """Containment and shrinking of pixel rectangles."""

    def test_contains_is_half_open(self):
        r = Rect(10, 20, 30, 40)
        assert r.contains(10, 20)
        assert r.contains(39.9, 59.9)
        assert not r.contains(40, 30)
        assert not r.contains(20, 60)
        assert not r.contains(9.99, 30)

    def test_shrunk_is_centered(self):
        r = Rect(0, 0, 100, 50).shrunk(0.2)
        assert r.x == pytest.approx(10.0)
        assert r.y == pytest.approx(5.0)
        assert r.width == pytest.approx(80.0)
        assert r.height == pytest.approx(40.0)

    def test_shrunk_zero_factor_is_identity(self):
        r = Rect(3, 4, 5, 6)
        assert r.shrunk(0.0) == r

    def test_degenerate_rect_contains_nothing(self):
        r = Rect(5, 5, 0, 10)
        assert not r.contains(5, 6)


class TestContracts:
    """Precondition helpers and timestamp checks."""

    def test_require_raises(self):
        with pytest.raises(PreconditionViolation, match="boom"):
            require(False, "boom")
        require(True, "never raised")

    def test_correspondence_bounds(self):
        ok = [FeatureCorrespondence(0, 1), FeatureCorrespondence(2, 0)]
        check_correspondence_bounds(ok, 3, 2, "test")

        with pytest.raises(PreconditionViolation):
            check_correspondence_bounds([FeatureCorrespondence(3, 0)], 3, 2, "test")
        with pytest.raises(PreconditionViolation):
            check_correspondence_bounds([FeatureCorrespondence(0, -1)], 3, 2, "test")

    def test_non_decreasing(self):
        assert assert_non_decreasing(None, 5, "t") == 5
        assert assert_non_decreasing(5, 5, "t") == 5
        with pytest.raises(TimestampError):
            assert_non_decreasing(6, 5, "t")
