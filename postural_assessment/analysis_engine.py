# Analysis Engine - fingerprint, cache lookup, rules, recommendations, store
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Mapping, NamedTuple, Optional

from pydantic import ValidationError

from postural_assessment import config
from postural_assessment import logger
from postural_assessment.angles import compute_angle_set
from postural_assessment.errors import (
    AnalysisCancelled, InvalidMedia, InvalidPose, LandmarkExtractionFailure,
)
from postural_assessment.history_store import HistoryStore, fingerprint, record_id_for
from postural_assessment.models import AnalysisRecord, Pose, RecommendationSet
from postural_assessment.recommendation import synthesize
from postural_assessment.rules import evaluate_rules
from postural_assessment.rules.catalog import catalog_landmarks


class AnalysisState(str, Enum):
    RECEIVED = "Received"
    FINGERPRINT_COMPUTED = "FingerprintComputed"
    CACHE_HIT = "CacheHit"
    CACHE_MISS = "CacheMiss"
    ANGLES_COMPUTED = "AnglesComputed"
    FINDINGS_EVALUATED = "FindingsEvaluated"
    RECOMMENDATIONS_SYNTHESIZED = "RecommendationsSynthesized"
    STORED = "Stored"
    RETURNED = "Returned"


# Advisory progress percentage per state
STATE_PROGRESS = {
    AnalysisState.RECEIVED: 0,
    AnalysisState.FINGERPRINT_COMPUTED: 10,
    AnalysisState.CACHE_HIT: 90,
    AnalysisState.CACHE_MISS: 20,
    AnalysisState.ANGLES_COMPUTED: 50,
    AnalysisState.FINDINGS_EVALUATED: 70,
    AnalysisState.RECOMMENDATIONS_SYNTHESIZED: 80,
    AnalysisState.STORED: 95,
    AnalysisState.RETURNED: 100,
}

ProgressCallback = Callable[[AnalysisState, int], None]
LandmarkProducer = Callable[[bytes], object]


class PoseAssessment(NamedTuple):
    angles: Mapping[str, float]
    findings: list
    observations: List[str]
    recommendations: RecommendationSet
    confidence_score: float


def report_progress(progress: Optional[ProgressCallback], state: AnalysisState):
    """Notify the caller; progress is advisory and never fails the analysis"""
    if progress is None:
        return
    try:
        progress(state, STATE_PROGRESS[state])
    except Exception as e:
        logger.log_warning("Progress Callback Failed", {"state": state.value, "error": str(e)})


def validate_media(media_bytes: bytes, content_type: Optional[str] = None):
    """
    Check upload type and size before anything else happens
    
    Raises:
        InvalidMedia: missing or unsupported content type, or larger than MAX_UPLOAD_BYTES
    """
    if not content_type or content_type not in config.ALLOWED_MEDIA_TYPES:
        raise InvalidMedia(
            f"Unsupported file type {content_type or '(missing)'}. Use JPEG, PNG, WebP, MP4 or WebM"
        )
    if media_bytes is not None and len(media_bytes) > config.MAX_UPLOAD_BYTES:
        raise InvalidMedia(
            f"File too large. Maximum {config.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
        )


def confidence_score(pose: Pose) -> float:
    """Mean visibility of every landmark the rule catalog depends on"""
    indices = catalog_landmarks()
    total = sum(pose.point(i).visibility for i in indices)
    return round(min(1.0, max(0.0, total / len(indices))), 3)


def evaluate_pose(pose: Pose, progress: Optional[ProgressCallback] = None) -> PoseAssessment:
    """
    Pure part of the pipeline: angles -> findings -> recommendations
    
    Args:
        pose: Validated pose
        progress: Optional advisory progress callback
        
    Returns:
        PoseAssessment with every derived artifact
    """
    angles = compute_angle_set(pose)
    report_progress(progress, AnalysisState.ANGLES_COMPUTED)

    evaluation = evaluate_rules(pose, angles)
    report_progress(progress, AnalysisState.FINDINGS_EVALUATED)

    recommendations = synthesize(evaluation.findings)
    report_progress(progress, AnalysisState.RECOMMENDATIONS_SYNTHESIZED)

    return PoseAssessment(
        angles=angles,
        findings=list(evaluation.findings),
        observations=list(evaluation.observations),
        recommendations=recommendations,
        confidence_score=confidence_score(pose),
    )


def extract_pose(landmark_producer: LandmarkProducer, media_bytes: bytes) -> Pose:
    """
    Ask the external producer for landmarks
    
    Raises:
        LandmarkExtractionFailure: producer raised or returned nothing
        InvalidPose: producer output breaks the landmark index contract
    """
    try:
        produced = landmark_producer(media_bytes)
    except Exception as e:
        logger.log_error("Landmark Extraction Failed", e)
        raise LandmarkExtractionFailure(str(e)) from e

    if produced is None:
        raise LandmarkExtractionFailure("landmark producer returned no pose")
    if isinstance(produced, Pose):
        return produced

    try:
        if isinstance(produced, (list, tuple)):
            return Pose.model_validate({"landmarks": list(produced)})
        return Pose.model_validate(produced)
    except ValidationError as e:
        raise InvalidPose(str(e)) from e


def build_record(fp: str, pose: Pose, assessment: PoseAssessment, display_name: Optional[str] = None,
                 file_name: str = "", content_type: str = "") -> AnalysisRecord:
    return AnalysisRecord(
        id=record_id_for(fp),
        fingerprint=fp,
        timestamp=datetime.now(timezone.utc),
        display_name=display_name or config.DEFAULT_DISPLAY_NAME,
        file_name=file_name or "",
        content_type=content_type or "",
        pose=pose,
        angles=dict(assessment.angles),
        findings=assessment.findings,
        observations=assessment.observations,
        recommendations=assessment.recommendations,
        confidence_score=assessment.confidence_score,
    )


def check_cancelled(cancel_event: Optional[threading.Event], fp: str):
    if cancel_event is not None and cancel_event.is_set():
        logger.log_warning("Analysis Cancelled", {"fingerprint": fp[:12], "stored": "nothing"})
        raise AnalysisCancelled("analysis cancelled by caller")


def analyze(media_bytes: bytes, landmark_producer: LandmarkProducer, store: HistoryStore,
            file_name: str = "", content_type: str = "", display_name: Optional[str] = None,
            progress: Optional[ProgressCallback] = None,
            cancel_event: Optional[threading.Event] = None) -> AnalysisRecord:
    """
    Full analysis request
    
    The producer is only called on a cache miss. Concurrent requests for the
    same media are serialized so exactly one record is computed and stored.
    
    Args:
        media_bytes: Raw source media, used for fingerprinting
        landmark_producer: Callable returning a Pose (or landmark list) for the media
        store: Open history store
        file_name: Uploaded file name, kept for search
        content_type: MIME type, must be one of ALLOWED_MEDIA_TYPES
        display_name: Patient name shown in history
        progress: Optional advisory progress callback
        cancel_event: Set to abandon the analysis before it is stored
        
    Returns:
        Stored (or previously cached) AnalysisRecord
    """
    report_progress(progress, AnalysisState.RECEIVED)
    validate_media(media_bytes, content_type)

    fp = fingerprint(media_bytes)
    report_progress(progress, AnalysisState.FINGERPRINT_COMPUTED)

    cached = store.lookup(fp)
    if cached is None:
        with store.fingerprint_lock(fp):
            # A concurrent request may have stored it while we waited
            cached = store.lookup(fp)
            if cached is None:
                record = compute_and_store(
                    fp, media_bytes, landmark_producer, store,
                    file_name, content_type, display_name, progress, cancel_event,
                )
                report_progress(progress, AnalysisState.RETURNED)
                return record

    logger.log_cache("HIT - Loaded Existing Analysis", {"id": cached.id, "fingerprint": fp[:12]})
    report_progress(progress, AnalysisState.CACHE_HIT)
    report_progress(progress, AnalysisState.RETURNED)
    return cached


def compute_and_store(fp: str, media_bytes: bytes, landmark_producer: LandmarkProducer,
                      store: HistoryStore, file_name: str, content_type: str,
                      display_name: Optional[str], progress: Optional[ProgressCallback],
                      cancel_event: Optional[threading.Event]) -> AnalysisRecord:
    logger.log_cache("MISS - Computing New Analysis", {"fingerprint": fp[:12], "file_name": file_name})
    report_progress(progress, AnalysisState.CACHE_MISS)

    pose = extract_pose(landmark_producer, media_bytes)
    check_cancelled(cancel_event, fp)

    with logger.log_timing("Pose Evaluated", {"fingerprint": fp[:12]}):
        assessment = evaluate_pose(pose, progress)
    record = build_record(fp, pose, assessment, display_name, file_name, content_type)
    check_cancelled(cancel_event, fp)

    store.store(record)
    report_progress(progress, AnalysisState.STORED)

    logger.log_success("Analysis Complete", {
        "id": record.id,
        "findings": len(record.findings),
        "confidence": record.confidence_score
    })
    return record


def analyze_pose(pose: Pose, media_bytes: bytes, store: HistoryStore, **kwargs) -> AnalysisRecord:
    """analyze() for callers that already hold the landmarks"""
    return analyze(media_bytes, lambda _media: pose, store, **kwargs)
