from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import numpy as np

from ttc_fusion.types import (
    FeatureCorrespondence,
    FeatureKeypoint,
    FrameEvent,
    FramePayload,
    IFrameProvider,
    RangePoint,
    assert_non_decreasing,
)
from ttc_fusion.core.features.cv_adapters import regions_from_boxes

_REQUIRED_KEYS = ("frame_id", "t_ns", "keypoints", "boxes", "box_ids", "points")


class ReplayProvider(IFrameProvider):
    """
    Replays pre-computed frame payloads, one .npz per frame, in file-name order.
    Each file holds:
      frame_id, t_ns   scalars
      keypoints (N,2)  pixel x, y
      boxes     (M,4)  x, y, width, height
      box_ids   (M,)
      points    (K,4)  x, y, z, r
      matches   (C,2)  optional, previous/current keypoint indices of the pair ending here
    """

    def __init__(self, root: str | Path, pattern: str = "*.npz"):
        self.root = Path(root)
        if not self.root.is_dir():
            raise FileNotFoundError(f"Frame directory not found: {self.root}")

        self._files: List[Path] = sorted(self.root.glob(pattern))
        self._i = 0
        self._last_t: Optional[int] = None

    def __len__(self) -> int:
        return len(self._files)

    def has_next(self) -> bool:
        return self._i < len(self._files)

    def next_event(self) -> FrameEvent:
        if not self.has_next():
            raise StopIteration

        path = self._files[self._i]
        self._i += 1
        ev = self._load_event(path)

        self._last_t = assert_non_decreasing(self._last_t, ev.frame.t_ns, "ReplayProvider")
        return ev

    # ---------- helpers ----------

    def _load_event(self, path: Path) -> FrameEvent:
        with np.load(path) as data:
            missing = [k for k in _REQUIRED_KEYS if k not in data.files]
            if missing:
                raise KeyError(f"{path}: missing arrays {missing}")

            kps = data["keypoints"].reshape(-1, 2)
            pts = data["points"].reshape(-1, 4)
            matches = data["matches"].reshape(-1, 2) if "matches" in data.files else np.zeros((0, 2), dtype=np.int64)

            frame = FramePayload(
                frame_id=int(data["frame_id"]),
                t_ns=int(data["t_ns"]),
                keypoints=tuple(FeatureKeypoint(float(u), float(v)) for u, v in kps),
                regions=regions_from_boxes(data["boxes"], data["box_ids"].reshape(-1).tolist()),
                range_points=tuple(RangePoint(float(x), float(y), float(z), float(r)) for x, y, z, r in pts),
            )
            corr = tuple(FeatureCorrespondence(int(q), int(t)) for q, t in matches)

        return FrameEvent(frame=frame, correspondences=corr)
