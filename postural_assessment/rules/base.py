# Rule Building Blocks - catalog entry type and shared severity classifier
from typing import Callable, Mapping, NamedTuple, Tuple

from postural_assessment.models import Pose, RuleResult


class ClinicalRule(NamedTuple):
    name: str
    region: str
    required: Tuple[int, ...]
    evaluate: Callable[[Pose, Mapping[str, float]], RuleResult]


def classify_severity(magnitude: float, mild_ceiling: float, moderate_ceiling: float) -> str:
    """
    Three-band severity classifier shared by every rule
    
    Args:
        magnitude: Deviation magnitude in the rule's units (degrees or percent)
        mild_ceiling: Magnitudes below this are mild
        moderate_ceiling: Magnitudes below this (and not mild) are moderate
        
    Returns:
        "mild", "moderate" or "severe"
    """
    if magnitude < mild_ceiling:
        return "mild"
    if magnitude < moderate_ceiling:
        return "moderate"
    return "severe"


def side_name(is_left: bool) -> str:
    return "left" if is_left else "right"


def other_side(side: str) -> str:
    return "right" if side == "left" else "left"
