"""
EduAsset - Zone Merge
Spatial deduplication of zones proposed by structure detection
"""
import logging
import math
from typing import List, Sequence, Tuple

from eduasset.models.location import Location

logger = logging.getLogger(__name__)


def center_distance(a: Location, b: Location) -> float:
    (ax, ay), (bx, by) = a.center, b.center
    return math.hypot(ax - bx, ay - by)


def merge_detected_zones(
    existing: Sequence[Location],
    detected: Sequence[Location],
    threshold: float = 1.0,
) -> Tuple[List[Location], List[Location], List[Location]]:
    """
    Append detected zones that are not spatial duplicates.

    A candidate is a duplicate when its bounding-box center lies closer than
    `threshold` percentage units to an existing zone or to a candidate
    already accepted in this pass.

    Returns (merged, added, skipped).
    """
    merged = list(existing)
    added: List[Location] = []
    skipped: List[Location] = []

    for candidate in detected:
        if any(center_distance(candidate, zone) < threshold for zone in merged):
            skipped.append(candidate)
            continue
        merged.append(candidate)
        added.append(candidate)

    logger.info(f"Zone merge: {len(added)} added, {len(skipped)} skipped as duplicates")
    return merged, added, skipped
