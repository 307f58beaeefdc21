# Posture Guide - quick single-frame posture score (live camera feedback)
import math
from typing import Dict, List

from postural_assessment import config
from postural_assessment import landmarks as lm
from postural_assessment.geometry import midpoint
from postural_assessment.models import Pose

UPPER_BODY = (lm.NOSE, lm.LEFT_SHOULDER, lm.RIGHT_SHOULDER)
SHOULDERS = (lm.LEFT_SHOULDER, lm.RIGHT_SHOULDER)


def _guide(guide_id: str, status: str, instruction: str, value: float) -> Dict:
    return {
        "id": guide_id,
        "status": status,
        "instruction": instruction,
        "value": round(value, 1),
    }


def check_head_alignment(pose: Pose) -> Dict:
    bands = config.POSTURE_GUIDE_BANDS["head_alignment"]
    shoulders = midpoint(pose.point(lm.LEFT_SHOULDER), pose.point(lm.RIGHT_SHOULDER))
    head_offset = abs(pose.point(lm.NOSE).x - shoulders.x) * 100

    if head_offset < bands["good"]:
        return _guide("head-alignment", "good", "✅ Excellent head alignment!", head_offset)
    if head_offset < bands["warning"]:
        return _guide("head-alignment", "warning",
                      "⚠️ Head slightly forward - pull the chin back", head_offset)
    return _guide("head-alignment", "error",
                  "❌ Head far forward - correct the cervical posture", head_offset)


def check_shoulder_level(pose: Pose) -> Dict:
    bands = config.POSTURE_GUIDE_BANDS["shoulder_level"]
    difference = abs(pose.point(lm.LEFT_SHOULDER).y - pose.point(lm.RIGHT_SHOULDER).y) * 100

    if difference < bands["good"]:
        return _guide("shoulder-level", "good", "✅ Shoulders perfectly level!", difference)
    if difference < bands["warning"]:
        return _guide("shoulder-level", "warning",
                      "⚠️ Slight shoulder height difference - level them", difference)
    return _guide("shoulder-level", "error", "❌ Uneven shoulders - correct the posture", difference)


def check_shoulder_posture(pose: Pose) -> Dict:
    bands = config.POSTURE_GUIDE_BANDS["shoulder_posture"]
    shoulders = midpoint(pose.point(lm.LEFT_SHOULDER), pose.point(lm.RIGHT_SHOULDER))
    drop = (shoulders.y - pose.point(lm.NOSE).y) * 100

    if bands["low"] < drop < bands["high"]:
        return _guide("shoulder-posture", "good", "✅ Shoulder posture is adequate!", drop)
    if drop < bands["low"]:
        return _guide("shoulder-posture", "warning",
                      "⚠️ Shoulders raised - relax and lower them", drop)
    return _guide("shoulder-posture", "error",
                  "❌ Shoulders protracted - draw the shoulder blades back", drop)


def check_neck_angle(pose: Pose) -> Dict:
    bands = config.POSTURE_GUIDE_BANDS["neck_angle"]
    shoulders = midpoint(pose.point(lm.LEFT_SHOULDER), pose.point(lm.RIGHT_SHOULDER))
    nose = pose.point(lm.NOSE)
    # Elevation of the nose above the shoulder midpoint, y grows downward
    angle = math.degrees(math.atan2(shoulders.y - nose.y, abs(nose.x - shoulders.x)))

    low, high = bands["good"]
    if low < angle <= high:
        return _guide("neck-angle", "good", "✅ Ideal cervical angle!", angle)
    if angle > bands["warning"]:
        return _guide("neck-angle", "warning",
                      "⚠️ Slight forward head posture - align the neck", angle)
    return _guide("neck-angle", "error",
                  "❌ Significant forward head posture - correct the neck posture", angle)


# (check, required landmarks) in display order
CHECKS = [
    (check_head_alignment, UPPER_BODY),
    (check_shoulder_level, SHOULDERS),
    (check_shoulder_posture, UPPER_BODY),
    (check_neck_angle, UPPER_BODY),
]


def score_posture(pose: Pose) -> Dict:
    """
    Score a single frame on four upper-body checks
    
    Args:
        pose: Pose in normalized image coordinates
        
    Returns:
        Dict with "score" (0-100) and the ordered "guides"
    """
    guides: List[Dict] = []
    total = 0

    for check, required in CHECKS:
        if not pose.all_visible(required):
            continue
        guide = check(pose)
        guides.append(guide)
        total += config.POSTURE_GUIDE_POINTS[guide["status"]]

    return {
        "score": min(100, total),
        "guides": guides,
    }
