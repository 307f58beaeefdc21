# Rule Catalog - ordered, closed table of clinical rules
from typing import Dict, List, Mapping

from postural_assessment import logger
from postural_assessment.errors import DegenerateGeometry
from postural_assessment.landmarks import landmark_name
from postural_assessment.models import Pose, RuleResult
from postural_assessment.rules import cervical, functional, knee, pelvis, shoulder
from postural_assessment.rules.base import ClinicalRule

CATALOG_VERSION = "1"

# Catalog order is output order
CATALOG: List[ClinicalRule] = [
    cervical.RULE,
    shoulder.HEIGHT_RULE,
    shoulder.PROTRACTION_RULE,
    pelvis.RULE,
    knee.RULE,
    functional.RULE,
]

RULE_REGIONS: Dict[str, str] = {rule.name: rule.region for rule in CATALOG}


def catalog_landmarks() -> List[int]:
    """Every landmark index some rule depends on, in ascending order"""
    indices = set()
    for rule in CATALOG:
        indices.update(rule.required)
    return sorted(indices)


def evaluate_rules(pose: Pose, angles: Mapping[str, float]) -> RuleResult:
    """
    Run every catalog rule against a pose and concatenate their findings
    
    Rules with insufficiently visible landmarks or a zero-length reference
    segment are skipped; the remaining rules still run.
    
    Args:
        pose: Validated pose
        angles: Angle set computed for the same pose
        
    Returns:
        Combined findings and observation lines in catalog order
    """
    combined = RuleResult()
    fired = []
    skipped = []

    for rule in CATALOG:
        hidden = pose.hidden(rule.required)
        if hidden:
            skipped.append(rule.name)
            logger.log_warning("Rule Skipped", {
                "rule": rule.name,
                "reason": "insufficient visibility",
                "landmarks": ", ".join(landmark_name(i) for i in hidden)
            })
            continue

        try:
            result = rule.evaluate(pose, angles)
        except DegenerateGeometry as e:
            skipped.append(rule.name)
            logger.log_warning("Rule Skipped", {
                "rule": rule.name,
                "reason": "degenerate geometry",
                "detail": str(e)
            })
            continue

        if result.findings:
            fired.append(rule.name)
        combined.findings.extend(result.findings)
        combined.observations.extend(result.observations)

    logger.log_rules("Catalog Evaluated", {
        "version": CATALOG_VERSION,
        "findings": len(combined.findings),
        "fired": ", ".join(fired) if fired else "none",
        "skipped": ", ".join(skipped) if skipped else "none"
    })

    return combined
