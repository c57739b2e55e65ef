# ttc_fusion/core/features/cv_adapters.py
# Conversions from OpenCV detector/matcher outputs into ttc_fusion types
from __future__ import annotations
from typing import Optional, Sequence, Tuple
import cv2
import numpy as np

from ttc_fusion.types import DetectedRegion, FeatureCorrespondence, FeatureKeypoint, Rect


def keypoints_from_cv(kps: Sequence[cv2.KeyPoint]) -> Tuple[FeatureKeypoint, ...]:
    return tuple(FeatureKeypoint(x=float(kp.pt[0]), y=float(kp.pt[1])) for kp in kps)


def correspondences_from_dmatches(matches: Sequence[cv2.DMatch]) -> Tuple[FeatureCorrespondence, ...]:
    """queryIdx indexes the previous frame, trainIdx the current one."""
    return tuple(FeatureCorrespondence(prev_idx=int(m.queryIdx), curr_idx=int(m.trainIdx)) for m in matches)


def regions_from_boxes(
    boxes: np.ndarray | Sequence[Sequence[float]],
    ids: Optional[Sequence[int]] = None,
) -> Tuple[DetectedRegion, ...]:
    """boxes: (M,4) of [x, y, width, height] as produced by cv2.dnn.NMSBoxes callers."""
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    if ids is None:
        ids = range(boxes.shape[0])
    elif len(ids) != boxes.shape[0]:
        raise ValueError(f"got {len(ids)} ids for {boxes.shape[0]} boxes")

    return tuple(
        DetectedRegion(region_id=int(rid), roi=Rect(float(b[0]), float(b[1]), float(b[2]), float(b[3])))
        for rid, b in zip(ids, boxes)
    )
