# Shoulder Rules - unilateral elevation and bilateral protraction
from typing import Mapping

from postural_assessment import config
from postural_assessment import landmarks as lm
from postural_assessment.geometry import distance, midpoint, percent_of
from postural_assessment.models import (
    Asymmetry, ClinicalHypothesis, Deviation, Limitation, Pose, RiskFactor, RuleResult, SuggestedTest,
)
from postural_assessment.rules.base import ClinicalRule, classify_severity, other_side, side_name

HEIGHT_REQUIRED = (lm.LEFT_SHOULDER, lm.RIGHT_SHOULDER, lm.LEFT_HIP)
PROTRACTION_REQUIRED = (lm.LEFT_SHOULDER, lm.RIGHT_SHOULDER, lm.LEFT_HIP, lm.RIGHT_HIP)


def shoulder_height_percent(pose: Pose) -> float:
    """Vertical shoulder difference as a percentage of the left shoulder-to-hip height"""
    left = pose.point(lm.LEFT_SHOULDER)
    right = pose.point(lm.RIGHT_SHOULDER)
    torso = abs(left.y - pose.point(lm.LEFT_HIP).y)
    return percent_of(abs(left.y - right.y), torso)


def protraction_percent(pose: Pose) -> float:
    """
    Depth of the shoulder midpoint in front of the hip midpoint, as a
    percentage of shoulder width. Smaller z is closer to the camera.
    """
    left = pose.point(lm.LEFT_SHOULDER)
    right = pose.point(lm.RIGHT_SHOULDER)
    shoulders = midpoint(left, right)
    hips = midpoint(pose.point(lm.LEFT_HIP), pose.point(lm.RIGHT_HIP))
    return percent_of(hips.z - shoulders.z, distance(left, right))


def evaluate_height(pose: Pose, angles: Mapping[str, float]) -> RuleResult:
    limits = config.RULE_THRESHOLDS["shoulder_height"]
    result = RuleResult()

    percent = shoulder_height_percent(pose)
    if percent <= limits["tolerance"]:
        return result

    higher = side_name(pose.point(lm.LEFT_SHOULDER).y < pose.point(lm.RIGHT_SHOULDER).y)
    lower = other_side(higher)

    result.observations.append(f"Shoulder asymmetry: {percent:.1f}% (normal: <3%)")
    result.findings.append(Asymmetry(
        rule="shoulder_height",
        pattern="shoulder_asymmetry",
        region="Shoulder girdle",
        description=f"{higher.capitalize()} shoulder elevated",
        measurement=f"{percent:.1f}% asymmetry",
    ))
    result.findings.append(Deviation(
        rule="shoulder_height",
        pattern="shoulder_elevation",
        segment="Shoulders",
        description=f"Unilateral elevation - {higher} shoulder",
        severity=classify_severity(percent, limits["mild"], limits["moderate"]),
        compensation=f"Lateral cervical flexion toward the {lower} side",
    ))

    if percent > limits["escalation"]:
        result.findings.append(Limitation(
            rule="shoulder_height",
            text=f"Restricted elevation of the {lower} shoulder",
        ))
        result.findings.append(RiskFactor(
            rule="shoulder_height",
            text="Possible functional scoliosis or upper limb discrepancy",
        ))
        result.findings.append(ClinicalHypothesis(
            rule="shoulder_height",
            text=f"{higher.capitalize()} upper trapezius syndrome",
        ))
        result.findings.append(SuggestedTest(
            rule="shoulder_height",
            name="Upper Trapezius Length Test",
            indication=f"Assess shortening of the {higher} upper trapezius",
            expected_finding=f"Restriction of {round(percent * 2)}° in contralateral lateral flexion",
            clinical_relevance="Confirms muscle tension as the cause of shoulder elevation",
        ))

    return result


def evaluate_protraction(pose: Pose, angles: Mapping[str, float]) -> RuleResult:
    limits = config.RULE_THRESHOLDS["shoulder_protraction"]
    result = RuleResult()

    percent = protraction_percent(pose)
    if percent <= limits["tolerance"]:
        return result

    result.observations.append(f"Shoulder protraction: {percent:.1f}% (normal: <15%)")
    result.findings.append(Deviation(
        rule="shoulder_protraction",
        pattern="shoulder_protraction",
        segment="Shoulders",
        description="Bilateral protraction",
        severity=classify_severity(percent, limits["mild"], limits["moderate"]),
        compensation="Compensatory thoracic kyphosis",
    ))

    if percent > limits["escalation"]:
        result.findings.append(Limitation(
            rule="shoulder_protraction",
            text="Reduced range of scapular retraction",
        ))
        result.findings.append(RiskFactor(
            rule="shoulder_protraction",
            text="Bilateral subacromial impingement syndrome",
        ))
        result.findings.append(ClinicalHypothesis(
            rule="shoulder_protraction",
            text="Pectoralis minor syndrome",
        ))
        result.findings.append(SuggestedTest(
            rule="shoulder_protraction",
            name="Pectoralis Minor Length Test",
            indication="Assess shortening that drives scapular protraction",
            expected_finding=f"Posterior elevation >2.5cm (normal: <1cm) given {percent:.1f}% protraction",
            clinical_relevance="Identifies the primary muscular cause of protraction",
        ))

    return result


HEIGHT_RULE = ClinicalRule(
    name="shoulder_height", region="shoulder", required=HEIGHT_REQUIRED, evaluate=evaluate_height,
)
PROTRACTION_RULE = ClinicalRule(
    name="shoulder_protraction", region="shoulder", required=PROTRACTION_REQUIRED,
    evaluate=evaluate_protraction,
)
