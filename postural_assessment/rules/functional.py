# Functional Rule - bilateral arm elevation symmetry
from typing import Mapping, Tuple

from postural_assessment import config
from postural_assessment import landmarks as lm
from postural_assessment.geometry import angle_between
from postural_assessment.models import FunctionalMovement, Limitation, Pose, RuleResult, SuggestedTest
from postural_assessment.rules.base import ClinicalRule

REQUIRED = (
    lm.LEFT_SHOULDER, lm.RIGHT_SHOULDER,
    lm.LEFT_ELBOW, lm.RIGHT_ELBOW,
    lm.LEFT_HIP, lm.RIGHT_HIP,
)


def arm_elevations(pose: Pose) -> Tuple[float, float]:
    """Humeral elevation per side: angle at the shoulder between the trunk and the upper arm"""
    left = angle_between(pose.point(lm.LEFT_HIP), pose.point(lm.LEFT_SHOULDER), pose.point(lm.LEFT_ELBOW))
    right = angle_between(pose.point(lm.RIGHT_HIP), pose.point(lm.RIGHT_SHOULDER), pose.point(lm.RIGHT_ELBOW))
    return left, right


def evaluate(pose: Pose, angles: Mapping[str, float]) -> RuleResult:
    limits = config.RULE_THRESHOLDS["arm_elevation"]
    result = RuleResult()

    left, right = arm_elevations(pose)
    difference = abs(left - right)

    if difference <= limits["tolerance"]:
        return result

    limited = difference > limits["escalation"]
    result.observations.append(f"Arm elevation asymmetry: {difference:.1f}° (normal: <15°)")
    result.findings.append(FunctionalMovement(
        rule="arm_elevation",
        movement="Arm elevation",
        quality="limited" if limited else "altered",
        observations=f"{difference:.1f}° asymmetry between arms (L: {left:.1f}°, R: {right:.1f}°)",
    ))

    if limited:
        restricted = "left" if left < right else "right"
        result.findings.append(Limitation(
            rule="arm_elevation",
            text=f"Restricted elevation of the {restricted} arm",
        ))
        result.findings.append(SuggestedTest(
            rule="arm_elevation",
            name="Neer Impingement Test",
            indication=f"Assess impingement in the {restricted} shoulder",
            expected_finding="Possibly positive with pain during passive elevation",
            clinical_relevance="Identifies subacromial impingement as the cause of the restriction",
        ))

    return result


RULE = ClinicalRule(name="arm_elevation", region="shoulder", required=REQUIRED, evaluate=evaluate)
