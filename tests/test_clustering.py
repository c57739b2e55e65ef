import numpy as np
import pytest

from tests.helpers import make_region
from ttc_fusion.types import PreconditionViolation, RangePoint
from ttc_fusion.core.fusion.clustering import (
    ClusterParams,
    CropParams,
    cluster_range_points,
    crop_range_points,
    points_for_region,
)


def pt(u, v):
    # with the direct projection, pixel (u, v) == sensor (x, y)
    return RangePoint(float(u), float(v), 0.0, 1.0)


class TestClusterRangePoints:
    """Range point to region assignment."""

    def test_point_inside_single_region(self, direct_P):
        regions = [make_region(0, 0, 0, 100, 100), make_region(1, 200, 0, 100, 100)]
        points = [pt(50, 50), pt(250, 50), pt(500, 500)]

        out = cluster_range_points(regions, points, direct_P, ClusterParams(shrink_factor=0.1))

        assert out == {0: (0,), 1: (1,)}

    def test_point_in_overlap_is_dropped(self, direct_P):
        regions = [make_region(0, 0, 0, 100, 100), make_region(1, 50, 0, 100, 100)]
        points = [pt(75, 50), pt(20, 50), pt(130, 50)]

        out = cluster_range_points(regions, points, direct_P, ClusterParams(shrink_factor=0.0))

        assert out[0] == (1,)
        assert out[1] == (2,)

    def test_border_band_is_excluded_by_shrinking(self, direct_P):
        regions = [make_region(0, 0, 0, 100, 100)]
        points = [pt(2, 50), pt(98, 50), pt(50, 50)]

        out = cluster_range_points(regions, points, direct_P, ClusterParams(shrink_factor=0.1))

        assert out[0] == (2,)

    def test_overlap_resolved_once_shrunk(self, direct_P):
        # rectangles overlap in the 90..110 band
        regions = [make_region(0, 0, 0, 110, 100), make_region(1, 90, 0, 110, 100)]
        points = [pt(100, 50)]

        assert cluster_range_points(regions, points, direct_P, ClusterParams(0.0)) == {0: (), 1: ()}
        assert cluster_range_points(regions, points, direct_P, ClusterParams(0.2)) == {0: (), 1: ()}

        # shrunk by 0.2: region 0 spans x in [11, 99), region 1 spans [101, 189)
        points = [pt(95, 50), pt(105, 50)]
        assert cluster_range_points(regions, points, direct_P, ClusterParams(0.0)) == {0: (), 1: ()}
        assert cluster_range_points(regions, points, direct_P, ClusterParams(0.2)) == {0: (0,), 1: (1,)}

    def test_degenerate_region_captures_nothing(self, direct_P):
        regions = [make_region(0, 10, 10, 0, 50)]
        out = cluster_range_points(regions, [pt(10, 20)], direct_P)
        assert out == {0: ()}

    def test_non_contiguous_ids(self, direct_P):
        regions = [make_region(42, 0, 0, 100, 100), make_region(7, 200, 0, 100, 100)]
        out = cluster_range_points(regions, [pt(250, 50), pt(50, 50)], direct_P)
        assert out == {42: (1,), 7: (0,)}

    def test_no_regions(self, direct_P):
        assert cluster_range_points([], [pt(1, 1)], direct_P) == {}

    def test_no_points(self, direct_P):
        assert cluster_range_points([make_region(0, 0, 0, 10, 10)], [], direct_P) == {0: ()}

    @pytest.mark.parametrize("factor", [-0.1, 1.0, 1.5])
    def test_invalid_shrink_factor(self, direct_P, factor):
        with pytest.raises(PreconditionViolation):
            cluster_range_points([make_region(0, 0, 0, 10, 10)], [pt(1, 1)], direct_P, ClusterParams(factor))

    def test_assigned_points_lie_in_shrunk_rect(self, direct_P):
        rng = np.random.default_rng(3)
        regions = [
            make_region(0, 0, 0, 120, 80),
            make_region(1, 100, 40, 150, 120),
            make_region(2, 300, 0, 60, 200),
        ]
        points = [pt(u, v) for u, v in rng.uniform(0, 400, size=(500, 2))]
        params = ClusterParams(shrink_factor=0.15)

        out = cluster_range_points(regions, points, direct_P, params)

        seen = set()
        for reg in regions:
            small = reg.roi.shrunk(params.shrink_factor)
            for idx in out[reg.region_id]:
                p = points[idx]
                assert small.contains(p.x, p.y)
                others = [r for r in regions if r is not reg]
                assert not any(o.roi.shrunk(params.shrink_factor).contains(p.x, p.y) for o in others)
                assert idx not in seen
                seen.add(idx)

    def test_points_for_region(self, direct_P):
        regions = [make_region(0, 0, 0, 100, 100)]
        points = [pt(500, 500), pt(50, 50)]
        out = cluster_range_points(regions, points, direct_P)
        assert points_for_region(out, 0, points) == [points[1]]
        assert points_for_region(out, 99, points) == []


class TestCropRangePoints:
    """Ego-lane crop of the raw cloud."""

    def test_default_crop(self):
        keep = RangePoint(10.0, 0.5, -1.2, 0.5)
        pts = [
            keep,
            RangePoint(1.0, 0.0, -1.2, 0.5),    # too close
            RangePoint(25.0, 0.0, -1.2, 0.5),   # too far
            RangePoint(10.0, 3.0, -1.2, 0.5),   # outside lane
            RangePoint(10.0, 0.0, -1.7, 0.5),   # road surface
            RangePoint(10.0, 0.0, -0.5, 0.5),   # too high
            RangePoint(10.0, 0.0, -1.2, 0.05),  # weak return
        ]
        assert crop_range_points(pts) == (keep,)

    def test_custom_crop(self):
        pts = [RangePoint(10.0, 0.0, 1.0, 0.0)]
        params = CropParams(min_z=-5.0, max_z=5.0, min_r=0.0)
        assert crop_range_points(pts, params) == tuple(pts)
