# Cervical Rule - craniovertebral angle (CVA)
from typing import Mapping

from postural_assessment import config
from postural_assessment import landmarks as lm
from postural_assessment.geometry import angle_between, midpoint, offset
from postural_assessment.models import (
    ClinicalHypothesis, Deviation, Limitation, Pose, RiskFactor, RuleResult, SuggestedTest,
)
from postural_assessment.rules.base import ClinicalRule, classify_severity

REQUIRED = (lm.LEFT_EAR, lm.RIGHT_EAR, lm.LEFT_SHOULDER, lm.RIGHT_SHOULDER)


def craniovertebral_angle(pose: Pose) -> float:
    """
    Angle at the ear midpoint between the horizontal and the line to the shoulder midpoint.

    The horizontal reference points toward the shoulders so the value does not
    depend on which way the subject faces.
    """
    ears = midpoint(pose.point(lm.LEFT_EAR), pose.point(lm.RIGHT_EAR))
    shoulders = midpoint(pose.point(lm.LEFT_SHOULDER), pose.point(lm.RIGHT_SHOULDER))
    direction = 1.0 if shoulders.x >= ears.x else -1.0
    return angle_between(offset(ears, dx=direction), ears, shoulders)


def evaluate(pose: Pose, angles: Mapping[str, float]) -> RuleResult:
    limits = config.RULE_THRESHOLDS["cervical"]
    result = RuleResult()

    cva = craniovertebral_angle(pose)
    deviation = abs(cva - limits["reference"])

    if deviation <= limits["tolerance"]:
        return result

    anteriorized = cva < limits["reference"]
    result.observations.append(f"Craniovertebral angle: {cva:.1f}° (normal: 48-52°)")
    result.findings.append(Deviation(
        rule="cervical",
        pattern="cervical_anteriorization" if anteriorized else "cervical_retraction",
        segment="Cervical spine",
        description="Forward head posture" if anteriorized else "Excessive cervical retraction",
        severity=classify_severity(deviation, limits["mild"], limits["moderate"]),
        compensation=(
            "Upper cervical hyperextension (C1-C2)" if anteriorized
            else "Compensatory cervical flexion"
        ),
    ))

    if anteriorized and deviation > limits["escalation"]:
        result.findings.append(Limitation(
            rule="cervical",
            text="Significant reduction of cervical extension mobility",
        ))
        result.findings.append(RiskFactor(
            rule="cervical",
            text="High risk of cervicogenic headache and suboccipital pain",
        ))
        result.findings.append(ClinicalHypothesis(rule="cervical", text="Upper crossed syndrome"))
        result.findings.append(SuggestedTest(
            rule="cervical",
            name="Cervical Flexion-Rotation Test (C1-C2)",
            indication="Assess atlantoaxial mobility restricted by forward head posture",
            expected_finding=f"Restriction >10° (normal: 44°±5°) given a CVA of {cva:.1f}°",
            clinical_relevance="Confirms C1-C2 dysfunction as the primary source of headache",
        ))

    return result


RULE = ClinicalRule(name="cervical", region="cervical", required=REQUIRED, evaluate=evaluate)
