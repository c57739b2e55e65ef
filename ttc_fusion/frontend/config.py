# ttc_fusion/frontend/config.py
from __future__ import annotations
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict
import yaml

from ttc_fusion.core.fusion.clustering import ClusterParams, CropParams
from ttc_fusion.core.matching.region_matcher import RegionMatchParams
from ttc_fusion.core.matching.correspondence_filter import CorrespondenceFilterParams
from ttc_fusion.core.ttc.range_ttc import RangeTTCParams
from ttc_fusion.core.ttc.camera_ttc import CameraTTCParams


@dataclass
class FusionConfig:
    frame_rate: float = 10.0     # Hz, frame pairs are 1/frame_rate apart
    crop_points: bool = True
    cluster: ClusterParams = field(default_factory=ClusterParams)
    crop: CropParams = field(default_factory=CropParams)
    region_match: RegionMatchParams = field(default_factory=RegionMatchParams)
    correspondence_filter: CorrespondenceFilterParams = field(default_factory=CorrespondenceFilterParams)
    range_ttc: RangeTTCParams = field(default_factory=RangeTTCParams)
    camera_ttc: CameraTTCParams = field(default_factory=CameraTTCParams)


_SECTIONS = {
    "cluster": ClusterParams,
    "crop": CropParams,
    "region_match": RegionMatchParams,
    "correspondence_filter": CorrespondenceFilterParams,
    "range_ttc": RangeTTCParams,
    "camera_ttc": CameraTTCParams,
}


def _build_params(section: str, cls, values: Dict[str, Any]):
    allowed = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - allowed)
    if unknown:
        raise ValueError(f"{section}: unknown keys {unknown} (allowed: {sorted(allowed)})")
    return cls(**values)


def fusion_config_from_dict(data: Dict[str, Any]) -> FusionConfig:
    cfg = FusionConfig()
    for key, value in data.items():
        if key in _SECTIONS:
            setattr(cfg, key, _build_params(key, _SECTIONS[key], value or {}))
        elif key == "frame_rate":
            cfg.frame_rate = float(value)
        elif key == "crop_points":
            cfg.crop_points = bool(value)
        else:
            raise ValueError(f"config: unknown section {key!r}")
    return cfg


def load_fusion_config(path: str | Path) -> FusionConfig:
    with Path(path).open("r") as f:
        data = yaml.safe_load(f) or {}
    return fusion_config_from_dict(data)
