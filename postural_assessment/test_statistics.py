"""Dashboard statistics and record comparison"""
from datetime import datetime, timedelta, timezone

import pytest

from postural_assessment.models import AnalysisRecord, Asymmetry, Deviation, RecommendationSet, RiskFactor
from postural_assessment.statistics import compare_records, confidence_band, summarize_history

NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

CERVICAL = Deviation(
    rule="cervical",
    pattern="cervical_anteriorization",
    segment="Cervical spine",
    description="Forward head posture",
    severity="moderate",
    compensation="Upper cervical hyperextension (C1-C2)",
)
PELVIS = Asymmetry(
    rule="pelvis",
    pattern="pelvic_asymmetry",
    region="Pelvis",
    description="Right hip elevated",
    measurement="5.0% obliquity",
)


def record(pose, index, days_ago, confidence, findings=(), angles=None, recommendations=None):
    return AnalysisRecord(
        id=f"analysis-{index}",
        fingerprint=f"{index:064d}",
        timestamp=NOW - timedelta(days=days_ago),
        pose=pose,
        angles=angles if angles is not None else {"Cervical Flexion": 20.0},
        findings=list(findings),
        recommendations=recommendations or RecommendationSet(),
        confidence_score=confidence,
    )


def test_confidence_bands():
    assert confidence_band(0.8) == "high"
    assert confidence_band(0.79) == "medium"
    assert confidence_band(0.6) == "medium"
    assert confidence_band(0.59) == "low"


def test_empty_history():
    summary = summarize_history([], now=NOW)

    assert summary["total_analyses"] == 0
    assert summary["avg_confidence"] == 0.0
    assert summary["confidence_distribution"] == {"high": 0, "medium": 0, "low": 0}
    assert summary["common_findings"] == []


def test_summary_counts(side_pose):
    plan = RecommendationSet(strengthening=["Neck flexors"], mobility=["Pec stretch"])
    records = [
        record(side_pose, 1, 1, 0.9, [CERVICAL, PELVIS], recommendations=plan),
        record(side_pose, 2, 3, 0.7, [CERVICAL], recommendations=plan),
        record(side_pose, 3, 10, 0.5, [CERVICAL, RiskFactor(rule="cervical", text="Headache")]),
        record(side_pose, 4, 30, 0.9),
    ]

    summary = summarize_history(records, now=NOW)

    assert summary["total_analyses"] == 4
    assert summary["this_week"] == 2
    assert summary["avg_confidence"] == pytest.approx(0.75)
    assert summary["confidence_distribution"] == {"high": 50, "medium": 25, "low": 25}
    assert summary["common_findings"] == [
        {"name": "Cervical spine: Forward head posture (moderate)", "count": 3},
        {"name": "Pelvis: Right hip elevated", "count": 1},
    ]
    assert summary["common_recommendations"] == [
        {"name": "Neck flexors", "count": 2},
        {"name": "Pec stretch", "count": 2},
    ]


def test_compare_records(side_pose):
    before = record(side_pose, 1, 20, 0.8, [CERVICAL, PELVIS],
                    angles={"Cervical Flexion": 30.0, "Left Knee Flexion": 170.0})
    after = record(side_pose, 2, 1, 0.9, [CERVICAL],
                   angles={"Cervical Flexion": 22.5, "Right Knee Flexion": 178.0})

    comparison = compare_records(before, after)

    assert comparison["first_id"] == "analysis-1"
    assert comparison["angle_differences"] == {"Cervical Flexion": -7.5}
    assert comparison["finding_counts"] == {"first": 2, "second": 1}
    assert comparison["confidence_change"] == pytest.approx(0.1)
