import pytest

from ttc_fusion.frontend.config import FusionConfig, fusion_config_from_dict, load_fusion_config


class TestFusionConfig:
    """YAML configuration of the fusion parameters."""

    def test_defaults(self):
        cfg = FusionConfig()
        assert cfg.frame_rate == 10.0
        assert cfg.cluster.shrink_factor == pytest.approx(0.10)
        assert cfg.correspondence_filter.outlier_ratio == pytest.approx(0.2)
        assert (cfg.range_ttc.k, cfg.range_ttc.p) == (13, 5)
        assert cfg.camera_ttc.min_dist_px == 100.0
        assert cfg.region_match.min_votes == 0

    def test_defaults_are_not_shared(self):
        a = FusionConfig()
        b = FusionConfig()
        a.range_ttc.k = 3
        assert b.range_ttc.k == 13

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "fusion.yaml"
        path.write_text(
            "frame_rate: 20\n"
            "crop_points: false\n"
            "cluster:\n"
            "  shrink_factor: 0.15\n"
            "range_ttc:\n"
            "  k: 20\n"
            "  p: 8\n"
            "region_match:\n"
            "  min_votes: 2\n"
        )
        cfg = load_fusion_config(path)
        assert cfg.frame_rate == 20.0
        assert cfg.crop_points is False
        assert cfg.cluster.shrink_factor == pytest.approx(0.15)
        assert (cfg.range_ttc.k, cfg.range_ttc.p) == (20, 8)
        assert cfg.region_match.min_votes == 2
        assert cfg.camera_ttc.min_dist_px == 100.0

    def test_empty_file(self, tmp_path):
        path = tmp_path / "fusion.yaml"
        path.write_text("")
        assert load_fusion_config(path) == FusionConfig()

    def test_unknown_key_in_section(self):
        with pytest.raises(ValueError, match="range_ttc"):
            fusion_config_from_dict({"range_ttc": {"q": 3}})

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="lidar"):
            fusion_config_from_dict({"lidar": {}})
