# Pelvis Rule - frontal plane pelvic obliquity
from typing import Mapping

from postural_assessment import config
from postural_assessment import landmarks as lm
from postural_assessment.geometry import percent_of
from postural_assessment.models import (
    Asymmetry, ClinicalHypothesis, Deviation, Limitation, Pose, RiskFactor, RuleResult, SuggestedTest,
)
from postural_assessment.rules.base import ClinicalRule, classify_severity, side_name

REQUIRED = (lm.LEFT_HIP, lm.RIGHT_HIP, lm.LEFT_KNEE)


def pelvic_tilt_percent(pose: Pose) -> float:
    """Vertical hip difference as a percentage of the left hip-to-knee height"""
    left = pose.point(lm.LEFT_HIP)
    right = pose.point(lm.RIGHT_HIP)
    thigh = abs(left.y - pose.point(lm.LEFT_KNEE).y)
    return percent_of(abs(left.y - right.y), thigh)


def evaluate(pose: Pose, angles: Mapping[str, float]) -> RuleResult:
    limits = config.RULE_THRESHOLDS["pelvis"]
    result = RuleResult()

    percent = pelvic_tilt_percent(pose)
    if percent <= limits["tolerance"]:
        return result

    higher = side_name(pose.point(lm.LEFT_HIP).y < pose.point(lm.RIGHT_HIP).y)

    result.observations.append(f"Pelvic obliquity: {percent:.1f}% (normal: <2%)")
    result.findings.append(Asymmetry(
        rule="pelvis",
        pattern="pelvic_asymmetry",
        region="Pelvis",
        description=f"{higher.capitalize()} hip elevated",
        measurement=f"{percent:.1f}% obliquity",
    ))
    result.findings.append(Deviation(
        rule="pelvis",
        pattern="pelvic_elevation",
        segment="Pelvis",
        description=f"Unilateral elevation - {higher} hip",
        severity=classify_severity(percent, limits["mild"], limits["moderate"]),
        compensation="Compensatory lumbar scoliosis",
    ))

    if percent > limits["escalation"]:
        result.findings.append(Limitation(
            rule="pelvis",
            text="Limited pelvic mobility in lateral tilt",
        ))
        result.findings.append(RiskFactor(
            rule="pelvis",
            text="Possible leg length discrepancy or sacroiliac dysfunction",
        ))
        result.findings.append(ClinicalHypothesis(rule="pelvis", text="Quadratus lumborum syndrome"))
        result.findings.append(SuggestedTest(
            rule="pelvis",
            name="Trendelenburg Test",
            indication="Assess gluteus medius strength and pelvic stability",
            expected_finding=f"Positive on the {higher} side with contralateral pelvic drop",
            clinical_relevance="Confirms muscle weakness as the cause of the obliquity",
        ))
        result.findings.append(SuggestedTest(
            rule="pelvis",
            name="Gillet Test (Hip Flexion)",
            indication="Assess sacroiliac mobility",
            expected_finding="Possible unilateral sacroiliac joint restriction",
            clinical_relevance="Distinguishes a joint cause from a muscular cause",
        ))

    return result


RULE = ClinicalRule(name="pelvis", region="pelvis", required=REQUIRED, evaluate=evaluate)
