# Recommendation Synthesizer - findings to categorized treatment plan
from typing import List, Sequence

from postural_assessment import config
from postural_assessment import logger
from postural_assessment.models import (
    RECOMMENDATION_CATEGORIES, Asymmetry, Deviation, RecommendationSet,
)


def matched_patterns(findings: Sequence) -> List[str]:
    """Pattern tags of every deviation/asymmetry, in finding order"""
    return [f.pattern for f in findings if isinstance(f, (Deviation, Asymmetry))]


def synthesize(findings: Sequence) -> RecommendationSet:
    """
    Build the treatment plan for a finding sequence
    
    Patterns are checked in RECOMMENDATION_RULES order, each contributing its
    fixed actions once. Lists are not deduplicated. When no pattern matches,
    every category receives the generic fallback entry.
    
    Args:
        findings: Findings produced by the rule catalog
        
    Returns:
        RecommendationSet with four ordered category lists
    """
    plan = RecommendationSet()
    present = set(matched_patterns(findings))
    applied = []

    for pattern, rule in config.RECOMMENDATION_RULES.items():
        if pattern not in present:
            continue
        applied.append(rule["label"])
        for category in RECOMMENDATION_CATEGORIES:
            plan.category(category).extend(rule["actions"].get(category, []))

    if plan.is_empty():
        for category in RECOMMENDATION_CATEGORIES:
            plan.category(category).append(config.FALLBACK_RECOMMENDATIONS[category])
        logger.log_warning("Using Fallback Recommendations", {
            "findings": len(findings),
            "reason": "No specific pattern matched"
        })
    else:
        logger.log_engine("Recommendations Synthesized", {
            "patterns": ", ".join(applied),
            "total_actions": len(plan.flatten())
        })

    return plan
