# Knee Rule - dynamic valgus/varus in the frontal plane
from typing import Mapping, Tuple

from postural_assessment import config
from postural_assessment import landmarks as lm
from postural_assessment.geometry import angle_between, midpoint, ratio
from postural_assessment.models import (
    ClinicalHypothesis, Deviation, FunctionalMovement, Limitation, Pose, RiskFactor, RuleResult,
    SuggestedTest,
)
from postural_assessment.rules.base import ClinicalRule, classify_severity

REQUIRED = (
    lm.LEFT_HIP, lm.RIGHT_HIP,
    lm.LEFT_KNEE, lm.RIGHT_KNEE,
    lm.LEFT_ANKLE, lm.RIGHT_ANKLE,
)

LEGS = {
    "left": (lm.LEFT_HIP, lm.LEFT_KNEE, lm.LEFT_ANKLE),
    "right": (lm.RIGHT_HIP, lm.RIGHT_KNEE, lm.RIGHT_ANKLE),
}


def knee_angle(pose: Pose, side: str) -> float:
    hip, knee, ankle = (pose.point(i) for i in LEGS[side])
    return angle_between(hip, knee, ankle)


def knee_direction(pose: Pose, side: str) -> str:
    """
    "valgus" when the knee sits medial to the hip-ankle line, else "varus".
    Medial means closer to the pelvic midline.
    """
    hip, knee, ankle = (pose.point(i) for i in LEGS[side])
    midline_x = midpoint(pose.point(lm.LEFT_HIP), pose.point(lm.RIGHT_HIP)).x

    t = ratio(knee.y - hip.y, ankle.y - hip.y)
    line_x = hip.x + t * (ankle.x - hip.x)

    if abs(knee.x - midline_x) < abs(line_x - midline_x):
        return "valgus"
    return "varus"


def worst_leg(pose: Pose) -> Tuple[str, float, float]:
    """Returns (side, knee angle, deviation from straight) for the more deviated leg"""
    left_angle = knee_angle(pose, "left")
    right_angle = knee_angle(pose, "right")
    left_deviation = 180.0 - left_angle
    right_deviation = 180.0 - right_angle

    if left_deviation > right_deviation:
        return "left", left_angle, left_deviation
    return "right", right_angle, right_deviation


def evaluate(pose: Pose, angles: Mapping[str, float]) -> RuleResult:
    limits = config.RULE_THRESHOLDS["knee_alignment"]
    result = RuleResult()

    side, angle, deviation = worst_leg(pose)
    if deviation <= limits["tolerance"]:
        return result

    direction = knee_direction(pose, side)
    label = direction.capitalize()

    result.observations.append(
        f"{label} deviation of the {side} knee: {angle:.1f}° (normal: 175-180°)"
    )
    result.findings.append(Deviation(
        rule="knee_alignment",
        pattern=f"knee_{direction}",
        segment="Knees",
        description=f"Dynamic {direction} - {side} knee",
        severity=classify_severity(deviation, limits["mild"], limits["moderate"]),
        compensation="Femoral internal rotation" if direction == "valgus" else "Femoral external rotation",
    ))
    result.findings.append(FunctionalMovement(
        rule="knee_alignment",
        movement="Squat",
        quality="altered",
        observations=f"Dynamic {direction} during flexion - angle {angle:.1f}°",
    ))

    if direction == "valgus" and deviation > limits["escalation"]:
        result.findings.append(Limitation(
            rule="knee_alignment",
            text="Inadequate neuromuscular control during functional activities",
        ))
        result.findings.append(RiskFactor(
            rule="knee_alignment",
            text="High risk of patellofemoral pain syndrome",
        ))
        result.findings.append(ClinicalHypothesis(rule="knee_alignment", text="Iliotibial band syndrome"))
        result.findings.append(SuggestedTest(
            rule="knee_alignment",
            name="Modified Ober Test",
            indication="Assess iliotibial band tension contributing to valgus",
            expected_finding="Positive with adduction angle <10° (normal: 15-20°)",
            clinical_relevance="Confirms lateral tension as a contributor to dynamic valgus",
        ))
        result.findings.append(SuggestedTest(
            rule="knee_alignment",
            name="Single Leg Squat Test",
            indication="Assess neuromuscular control during functional movement",
            expected_finding="Dynamic valgus >10° from the midline during single-leg squat",
            clinical_relevance="Quantifies the motor control deficit that predisposes to injury",
        ))

    return result


RULE = ClinicalRule(name="knee_alignment", region="knee", required=REQUIRED, evaluate=evaluate)
