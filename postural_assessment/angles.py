# Angle Set - joint angles derived once per pose
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Tuple

from postural_assessment import landmarks as lm
from postural_assessment import logger
from postural_assessment.errors import DegenerateGeometry
from postural_assessment.geometry import angle_between, midpoint, offset
from postural_assessment.models import Pose


def cervical_flexion(pose: Pose) -> float:
    """Neck inclination: angle at the shoulder midpoint between vertical and the ear midpoint"""
    shoulders = midpoint(pose.point(lm.LEFT_SHOULDER), pose.point(lm.RIGHT_SHOULDER))
    ears = midpoint(pose.point(lm.LEFT_EAR), pose.point(lm.RIGHT_EAR))
    # Image y grows downward, so "up" is -y
    return angle_between(offset(shoulders, dy=-1.0), shoulders, ears)


def joint_angle(a: int, b: int, c: int) -> Callable[[Pose], float]:
    def compute(pose: Pose) -> float:
        return angle_between(pose.point(a), pose.point(b), pose.point(c))
    return compute


# (name, required landmarks, function) in output order
ANGLE_DEFINITIONS: List[Tuple[str, Tuple[int, ...], Callable[[Pose], float]]] = [
    ("Cervical Flexion",
     (lm.LEFT_EAR, lm.RIGHT_EAR, lm.LEFT_SHOULDER, lm.RIGHT_SHOULDER),
     cervical_flexion),
    ("Right Shoulder Flexion",
     (lm.RIGHT_HIP, lm.RIGHT_SHOULDER, lm.RIGHT_ELBOW),
     joint_angle(lm.RIGHT_HIP, lm.RIGHT_SHOULDER, lm.RIGHT_ELBOW)),
    ("Left Shoulder Flexion",
     (lm.LEFT_HIP, lm.LEFT_SHOULDER, lm.LEFT_ELBOW),
     joint_angle(lm.LEFT_HIP, lm.LEFT_SHOULDER, lm.LEFT_ELBOW)),
    ("Right Elbow Flexion",
     (lm.RIGHT_SHOULDER, lm.RIGHT_ELBOW, lm.RIGHT_WRIST),
     joint_angle(lm.RIGHT_SHOULDER, lm.RIGHT_ELBOW, lm.RIGHT_WRIST)),
    ("Left Elbow Flexion",
     (lm.LEFT_SHOULDER, lm.LEFT_ELBOW, lm.LEFT_WRIST),
     joint_angle(lm.LEFT_SHOULDER, lm.LEFT_ELBOW, lm.LEFT_WRIST)),
    ("Right Hip Flexion",
     (lm.RIGHT_SHOULDER, lm.RIGHT_HIP, lm.RIGHT_KNEE),
     joint_angle(lm.RIGHT_SHOULDER, lm.RIGHT_HIP, lm.RIGHT_KNEE)),
    ("Left Hip Flexion",
     (lm.LEFT_SHOULDER, lm.LEFT_HIP, lm.LEFT_KNEE),
     joint_angle(lm.LEFT_SHOULDER, lm.LEFT_HIP, lm.LEFT_KNEE)),
    ("Right Knee Flexion",
     (lm.RIGHT_HIP, lm.RIGHT_KNEE, lm.RIGHT_ANKLE),
     joint_angle(lm.RIGHT_HIP, lm.RIGHT_KNEE, lm.RIGHT_ANKLE)),
    ("Left Knee Flexion",
     (lm.LEFT_HIP, lm.LEFT_KNEE, lm.LEFT_ANKLE),
     joint_angle(lm.LEFT_HIP, lm.LEFT_KNEE, lm.LEFT_ANKLE)),
    ("Right Ankle Dorsiflexion",
     (lm.RIGHT_KNEE, lm.RIGHT_ANKLE, lm.RIGHT_FOOT_INDEX),
     joint_angle(lm.RIGHT_KNEE, lm.RIGHT_ANKLE, lm.RIGHT_FOOT_INDEX)),
    ("Left Ankle Dorsiflexion",
     (lm.LEFT_KNEE, lm.LEFT_ANKLE, lm.LEFT_FOOT_INDEX),
     joint_angle(lm.LEFT_KNEE, lm.LEFT_ANKLE, lm.LEFT_FOOT_INDEX)),
]


def compute_angle_set(pose: Pose) -> Mapping[str, float]:
    """
    Compute every joint angle the pose supports
    
    Angles whose landmarks are insufficiently visible, or whose rays are
    degenerate, are left out rather than reported as zero.
    
    Args:
        pose: Validated pose
        
    Returns:
        Read-only mapping of angle name -> degrees
    """
    angles: Dict[str, float] = {}
    skipped = []

    for name, required, compute in ANGLE_DEFINITIONS:
        if not pose.all_visible(required):
            skipped.append(name)
            continue
        try:
            angles[name] = compute(pose)
        except DegenerateGeometry:
            skipped.append(name)

    logger.log_engine("Angles Computed", {
        "computed": len(angles),
        "skipped": ", ".join(skipped) if skipped else "none"
    })

    return MappingProxyType(angles)
