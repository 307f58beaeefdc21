from postural_assessment.rules.base import ClinicalRule, classify_severity
from postural_assessment.rules.catalog import CATALOG, CATALOG_VERSION, RULE_REGIONS, evaluate_rules

__all__ = [
    "CATALOG",
    "CATALOG_VERSION",
    "RULE_REGIONS",
    "ClinicalRule",
    "classify_severity",
    "evaluate_rules",
]
