# History Statistics - dashboard summary and side-by-side comparison
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from postural_assessment import config
from postural_assessment.models import AnalysisRecord, Asymmetry, Deviation, FunctionalMovement, finding_summary

SUMMARIZED_FINDINGS = (Deviation, Asymmetry, FunctionalMovement)


def confidence_band(score: float) -> str:
    if score >= config.CONFIDENCE_BANDS["high"]:
        return "high"
    if score >= config.CONFIDENCE_BANDS["medium"]:
        return "medium"
    return "low"


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def summarize_history(records: Sequence[AnalysisRecord], now: Optional[datetime] = None) -> Dict:
    """
    Dashboard numbers over the stored history
    
    Args:
        records: Analysis records (any order)
        now: Reference time for the recent window, defaults to current UTC time
        
    Returns:
        Dict with totals, confidence stats and the most common findings/recommendations
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    window_start = now - timedelta(days=config.RECENT_WINDOW_DAYS)

    total = len(records)
    recent = [r for r in records if _as_utc(r.timestamp) >= window_start]

    bands = Counter(confidence_band(r.confidence_score) for r in records)
    distribution = {
        band: round(bands.get(band, 0) / total * 100) if total else 0
        for band in ("high", "medium", "low")
    }

    findings = Counter()
    recommendations = Counter()
    for record in records:
        for finding in record.findings:
            if isinstance(finding, SUMMARIZED_FINDINGS):
                findings[finding_summary(finding)] += 1
        for item in record.recommendations.flatten():
            recommendations[item] += 1

    return {
        "total_analyses": total,
        "this_week": len(recent),
        "avg_confidence": round(sum(r.confidence_score for r in records) / total, 3) if total else 0.0,
        "confidence_distribution": distribution,
        "common_findings": [
            {"name": name, "count": count}
            for name, count in findings.most_common(config.COMMON_FINDINGS_LIMIT)
        ],
        "common_recommendations": [
            {"name": name, "count": count}
            for name, count in recommendations.most_common(config.COMMON_RECOMMENDATIONS_LIMIT)
        ],
    }


def compare_records(first: AnalysisRecord, second: AnalysisRecord) -> Dict:
    """Angle-by-angle change from the first analysis to the second"""
    shared: List[str] = [name for name in first.angles if name in second.angles]

    return {
        "first_id": first.id,
        "second_id": second.id,
        "angle_differences": {
            name: round(second.angles[name] - first.angles[name], 1) for name in shared
        },
        "finding_counts": {
            "first": len(first.findings),
            "second": len(second.findings),
        },
        "confidence_change": round(second.confidence_score - first.confidence_score, 3),
    }
