"""Normalized bounding boxes, overlap measures and non-maximum suppression."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Sequence

NORMAL_NMS = "NormalNMS"
LINEAR_SOFT_NMS = "LinearSoftNMS"
GAUSSIAN_SOFT_NMS = "GuassianSoftNMS"
BOX_VOTE = "BoxVote"


@dataclass
class NormalizedBBox:
    """An axis-aligned box in normalized image coordinates."""

    xmin: float = -1.0
    ymin: float = -1.0
    xmax: float = -1.0
    ymax: float = -1.0
    label: int = -1
    score: float = -1.0
    size: float = -1.0
    mask: bool = False


def _check_same_length(bboxes: Sequence[NormalizedBBox], scores: Sequence[float]) -> None:
    if len(bboxes) != len(scores):
        raise ValueError("bboxes and scores have different size.")


def intersect_bbox(bbox1: NormalizedBBox, bbox2: NormalizedBBox) -> NormalizedBBox:
    """Return the intersection of two boxes, or an all-zero box if they are disjoint."""
    if (
        bbox2.xmin > bbox1.xmax
        or bbox2.xmax < bbox1.xmin
        or bbox2.ymin > bbox1.ymax
        or bbox2.ymax < bbox1.ymin
    ):
        return NormalizedBBox(xmin=0.0, ymin=0.0, xmax=0.0, ymax=0.0)
    return NormalizedBBox(
        xmin=max(bbox1.xmin, bbox2.xmin),
        ymin=max(bbox1.ymin, bbox2.ymin),
        xmax=min(bbox1.xmax, bbox2.xmax),
        ymax=min(bbox1.ymax, bbox2.ymax),
    )


def bbox_size(bbox: NormalizedBBox) -> float:
    """Area of a box; a stored non-negative ``size`` wins, invalid boxes give 0."""
    if bbox.xmax < bbox.xmin or bbox.ymax < bbox.ymin:
        return 0.0
    if bbox.size >= 0:
        return bbox.size
    return (bbox.xmax - bbox.xmin) * (bbox.ymax - bbox.ymin)


def jaccard_overlap(bbox1: NormalizedBBox, bbox2: NormalizedBBox) -> float:
    """Intersection over union of two boxes."""
    inter = intersect_bbox(bbox1, bbox2)
    width = inter.xmax - inter.xmin
    height = inter.ymax - inter.ymin
    if width > 0 and height > 0:
        inter_size = width * height
        return inter_size / (bbox_size(bbox1) + bbox_size(bbox2) - inter_size)
    return 0.0


def max_score_index(
    scores: Sequence[float], threshold: float, top_k: int
) -> list[tuple[float, int]]:
    """Pairs of (score, index) above ``threshold``, best first, at most ``top_k``.

    Equal scores keep their original order. A negative ``top_k`` keeps all.
    """
    pairs = [(score, idx) for idx, score in enumerate(scores) if score > threshold]
    pairs.sort(key=lambda pair: pair[0], reverse=True)
    if -1 < top_k < len(pairs):
        del pairs[top_k:]
    return pairs


def apply_softnms_fast(
    bboxes: Sequence[NormalizedBBox],
    scores: Sequence[float],
    score_threshold: float,
    nms_threshold: float,
    top_k: int,
    is_linear: bool,
    sigma: float,
) -> tuple[list[int], list[float]]:
    """Soft-NMS: return the kept indices and the decayed scores.

    Selection order follows the original scores; the remaining candidates'
    scores are decayed linearly or with a Gaussian kernel after each pick.
    """
    _check_same_length(bboxes, scores)
    new_scores = list(scores)
    remaining = max_score_index(scores, score_threshold, top_k)

    indices: list[int] = []
    while remaining:
        best_pos = max(range(len(remaining)), key=lambda k: remaining[k])
        _, best_idx = remaining.pop(best_pos)
        best_bbox = bboxes[best_idx]
        indices.append(best_idx)
        for _, cur_idx in remaining:
            overlap = jaccard_overlap(best_bbox, bboxes[cur_idx])
            if is_linear:
                new_scores[cur_idx] *= 1.0 - overlap
            else:
                new_scores[cur_idx] *= math.exp(-1.0 * overlap**2 / sigma)
    return indices, new_scores


def apply_boxvoting_fast(
    bboxes: Sequence[NormalizedBBox],
    scores: Sequence[float],
    conf_threshold: float,
    nms_threshold: float,
    sigma: float,
) -> tuple[list[int], list[NormalizedBBox], list[float]]:
    """Box voting over candidates above ``conf_threshold``.

    Returns the candidate indices together with the voted boxes and the
    updated scores; the inputs are left untouched.
    """
    _check_same_length(bboxes, scores)
    boxes = [replace(box, mask=False) for box in bboxes]
    new_scores = list(scores)
    if not boxes:
        return [], boxes, new_scores

    indices = [idx for idx, score in enumerate(new_scores) if score > conf_threshold]

    for _ in indices:
        max_box_idx = 0
        for idx in indices[1:]:
            if boxes[idx].mask:
                continue
            if new_scores[idx] > new_scores[max_box_idx]:
                max_box_idx = idx

        best = boxes[max_box_idx]
        best.score = new_scores[max_box_idx]
        best.mask = True
        s_vt = new_scores[max_box_idx]
        x1_vt = best.xmin * s_vt
        x2_vt = best.xmax * s_vt
        y1_vt = best.ymin * s_vt
        y2_vt = best.ymax * s_vt

        for sub in indices:
            cur = boxes[sub]
            if cur.mask:
                continue
            overlap = jaccard_overlap(best, cur)
            if sigma == 0:
                cur.mask = True
            else:
                new_scores[sub] *= math.exp(-1.0 * overlap**2 / sigma)
            cur.score = new_scores[sub]

            if overlap > nms_threshold:
                s_cur = cur.score
                s_vt += s_cur
                x1_vt += cur.xmin * s_cur
                x2_vt += cur.xmax * s_cur
                y1_vt += cur.ymin * s_cur
                y2_vt += cur.ymax * s_cur

        if s_vt > 0.0001:
            best.xmin = x1_vt / s_vt
            best.xmax = x2_vt / s_vt
            best.ymin = y1_vt / s_vt
            best.ymax = y2_vt / s_vt

    return indices, boxes, new_scores


def apply_nms_fast(
    bboxes: Sequence[NormalizedBBox],
    scores: Sequence[float],
    score_threshold: float,
    nms_threshold: float,
    eta: float,
    top_k: int,
) -> list[int]:
    """Greedy NMS with an adaptive threshold; return the kept indices."""
    _check_same_length(bboxes, scores)
    candidates = max_score_index(scores, score_threshold, top_k)

    adaptive_threshold = nms_threshold
    indices: list[int] = []
    for _, idx in candidates:
        keep = all(
            jaccard_overlap(bboxes[idx], bboxes[kept]) <= adaptive_threshold
            for kept in indices
        )
        if keep:
            indices.append(idx)
            if eta < 1 and adaptive_threshold > 0.5:
                adaptive_threshold *= eta
    return indices