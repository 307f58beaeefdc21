# Exercise Protocol - home exercise templates derived from findings
from typing import Dict, List, Sequence

from postural_assessment import config
from postural_assessment.rules import RULE_REGIONS

# Regions in the order their templates are listed
PROTOCOL_ORDER = ["cervical", "shoulder", "pelvis", "knee"]


def build_exercise_protocol(findings: Sequence) -> List[Dict]:
    """
    Pick one template per body region that has findings, then the general stretch
    
    Args:
        findings: Findings of one analysis
        
    Returns:
        List of exercise dicts (copies of the configured templates)
    """
    regions = {RULE_REGIONS.get(f.rule) for f in findings}

    exercises = []
    for region in PROTOCOL_ORDER:
        if region in regions:
            exercises.append(dict(config.EXERCISE_TEMPLATES[region]))

    exercises.append(dict(config.GENERAL_EXERCISE))
    return exercises
