from datetime import datetime
from typing import Annotated, Dict, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from postural_assessment import config

Severity = Literal["mild", "moderate", "severe"]
MovementQuality = Literal["normal", "altered", "limited"]

RECOMMENDATION_CATEGORIES = ("strengthening", "mobility", "proprioception", "functional")


class Point(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    x: float
    y: float
    z: float = 0.0


class Landmark(Point):
    # Confidence weight, not a flag
    visibility: float = Field(ge=0.0, le=1.0)

    def is_visible(self) -> bool:
        return self.visibility > config.VISIBILITY_THRESHOLD


class Pose(BaseModel):
    """
    Complete fixed-index landmark set for one subject at one instant.

    Index meaning follows postural_assessment.landmarks.
    """

    landmarks: List[Landmark]

    @field_validator("landmarks")
    @classmethod
    def check_landmark_count(cls, value: List[Landmark]) -> List[Landmark]:
        if len(value) != config.POSE_LANDMARK_COUNT:
            raise ValueError(
                f"pose must have exactly {config.POSE_LANDMARK_COUNT} landmarks, got {len(value)}"
            )
        return value

    def point(self, index: int) -> Landmark:
        return self.landmarks[index]

    def all_visible(self, indices) -> bool:
        return all(self.landmarks[i].is_visible() for i in indices)

    def hidden(self, indices) -> List[int]:
        return [i for i in indices if not self.landmarks[i].is_visible()]


# ============================================================================
# FINDINGS - closed tagged union, discriminated by "kind"
# ============================================================================

class Deviation(BaseModel):
    kind: Literal["deviation"] = "deviation"
    rule: str
    pattern: str
    segment: str
    description: str
    severity: Severity
    compensation: str


class Asymmetry(BaseModel):
    kind: Literal["asymmetry"] = "asymmetry"
    rule: str
    pattern: str
    region: str
    description: str
    measurement: str


class FunctionalMovement(BaseModel):
    kind: Literal["functional_movement"] = "functional_movement"
    rule: str
    movement: str
    quality: MovementQuality
    observations: str


class RiskFactor(BaseModel):
    kind: Literal["risk_factor"] = "risk_factor"
    rule: str
    text: str


class ClinicalHypothesis(BaseModel):
    kind: Literal["clinical_hypothesis"] = "clinical_hypothesis"
    rule: str
    text: str


class SuggestedTest(BaseModel):
    kind: Literal["suggested_test"] = "suggested_test"
    rule: str
    name: str
    indication: str
    expected_finding: str
    clinical_relevance: str


class Limitation(BaseModel):
    kind: Literal["limitation"] = "limitation"
    rule: str
    text: str


Finding = Annotated[
    Union[
        Deviation,
        Asymmetry,
        FunctionalMovement,
        RiskFactor,
        ClinicalHypothesis,
        SuggestedTest,
        Limitation,
    ],
    Field(discriminator="kind"),
]


def finding_summary(finding) -> str:
    """One-line text for a finding, used by history search and statistics"""
    if isinstance(finding, Deviation):
        return f"{finding.segment}: {finding.description} ({finding.severity})"
    if isinstance(finding, Asymmetry):
        return f"{finding.region}: {finding.description}"
    if isinstance(finding, FunctionalMovement):
        return f"{finding.movement}: {finding.quality}"
    if isinstance(finding, SuggestedTest):
        return finding.name
    if isinstance(finding, (RiskFactor, ClinicalHypothesis, Limitation)):
        return finding.text
    raise TypeError(f"unknown finding type: {type(finding).__name__}")


class RuleResult(BaseModel):
    """Output of one catalog rule: typed findings plus measurement lines"""

    findings: List[Finding] = Field(default_factory=list)
    observations: List[str] = Field(default_factory=list)


class RecommendationSet(BaseModel):
    strengthening: List[str] = Field(default_factory=list)
    mobility: List[str] = Field(default_factory=list)
    proprioception: List[str] = Field(default_factory=list)
    functional: List[str] = Field(default_factory=list)

    def category(self, name: str) -> List[str]:
        return getattr(self, name)

    def is_empty(self) -> bool:
        return all(len(self.category(name)) == 0 for name in RECOMMENDATION_CATEGORIES)

    def flatten(self) -> List[str]:
        items = []
        for name in RECOMMENDATION_CATEGORIES:
            items.extend(self.category(name))
        return items


class AnalysisRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    fingerprint: str
    timestamp: datetime
    display_name: str = config.DEFAULT_DISPLAY_NAME
    file_name: str = ""
    content_type: str = ""
    pose: Pose
    angles: Dict[str, float]
    findings: List[Finding] = Field(default_factory=list)
    observations: List[str] = Field(default_factory=list)
    recommendations: RecommendationSet = Field(default_factory=RecommendationSet)
    confidence_score: float = Field(ge=0.0, le=1.0)
