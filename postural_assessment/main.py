# Main FastAPI Application - Postural Assessment Server
import base64
import binascii
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

from postural_assessment import config
from postural_assessment import database
from postural_assessment import logger
from postural_assessment.analysis_engine import analyze_pose
from postural_assessment.errors import (
    AnalysisCancelled, FingerprintingFailure, InvalidMedia, InvalidPose,
    LandmarkExtractionFailure, StorageUnavailable,
)
from postural_assessment.history_store import HistoryStore
from postural_assessment.models import AnalysisRecord, Landmark, Pose
from postural_assessment.posture_guide import score_posture
from postural_assessment.recommendation import build_exercise_protocol
from postural_assessment.statistics import compare_records, summarize_history

# Initialize FastAPI
app = FastAPI(
    title="Postural Assessment API",
    description="Clinical posture analysis from pose landmarks with a cached analysis history",
    version="1.0.0"
)

BAD_INPUT_ERRORS = (InvalidMedia, InvalidPose, FingerprintingFailure, LandmarkExtractionFailure)


# ============================================================================
# PYDANTIC MODELS
# ============================================================================

class AnalyzeRequest(BaseModel):
    landmarks: List[Landmark]
    media_base64: str
    content_type: str
    file_name: str = ""
    display_name: Optional[str] = None


class PostureGuideRequest(BaseModel):
    landmarks: List[Landmark]


# ============================================================================
# DEPENDENCY INJECTION - History Store
# ============================================================================

def get_store(request: Request) -> HistoryStore:
    """
    History store opened at startup
    
    Raises HTTPException if storage is not available
    """
    store = getattr(request.app.state, "store", None)

    if store is None or not store.is_open:
        raise HTTPException(status_code=503, detail="History store unavailable")

    return store


def decode_media(media_base64: str) -> bytes:
    """Decode the uploaded media, accepting data URLs"""
    if media_base64.startswith("data:") and "," in media_base64:
        media_base64 = media_base64.split(",", 1)[1]
    try:
        return base64.b64decode(media_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="media_base64 is not valid base64")


def build_pose(landmarks: List[Landmark]) -> Pose:
    try:
        return Pose(landmarks=landmarks)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid pose: {e}")


def require_record(store: HistoryStore, record_id: str) -> AnalysisRecord:
    record = store.get(record_id)

    if record is None:
        raise HTTPException(status_code=404, detail="Analysis not found")

    return record


def storage_call(action: str, call, *args):
    """Run a store operation, mapping storage failures to 503"""
    try:
        return call(*args)
    except StorageUnavailable as e:
        logger.log_error(action, e)
        raise HTTPException(status_code=503, detail=str(e))


# ============================================================================
# STARTUP/SHUTDOWN EVENTS
# ============================================================================

@app.on_event("startup")
def startup_event():
    """Open the history store on startup"""
    logger.log_lifecycle("STARTUP", "Initializing Postural Assessment Server")

    store = HistoryStore(config.DATABASE_URL)
    try:
        store.open()
    except StorageUnavailable as e:
        # Server still comes up; store-backed routes answer 503
        logger.log_error("Startup Failed", e, {"database_url": config.DATABASE_URL})
        app.state.store = None
        return

    app.state.store = store
    logger.log_success("Server Ready", {
        "database": "Connected",
        "history_limit": store.limit,
        "log_level": config.LOG_LEVEL
    })


@app.on_event("shutdown")
def shutdown_event():
    """Close the history store"""
    logger.log_lifecycle("SHUTDOWN", "Stopping all services")

    store = getattr(app.state, "store", None)
    if store is not None:
        store.close()
        app.state.store = None


# ============================================================================
# HEALTH CHECK
# ============================================================================

@app.get("/health")
def health_check(request: Request):
    """
    Health check endpoint
    
    Tests database connectivity
    """
    store = getattr(request.app.state, "store", None)
    db_ok = store is not None and store.is_open and database.test_connection(store.engine)

    return {
        "status": "healthy" if db_ok else "degraded",
        "database": "connected" if db_ok else "disconnected",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# ============================================================================
# ANALYSIS ROUTES
# ============================================================================

@app.post("/analyses")
def create_analysis(request: AnalyzeRequest, store: HistoryStore = Depends(get_store)):
    """
    Analyze a pose for the uploaded media
    
    Identical media returns the stored analysis without recomputing it.
    """
    logger.log_api("POST /analyses", {
        "file_name": request.file_name,
        "content_type": request.content_type
    })

    media_bytes = decode_media(request.media_base64)
    pose = build_pose(request.landmarks)

    try:
        record = analyze_pose(
            pose, media_bytes, store,
            file_name=request.file_name,
            content_type=request.content_type,
            display_name=request.display_name,
        )
    except BAD_INPUT_ERRORS as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AnalysisCancelled as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StorageUnavailable as e:
        logger.log_error("Analysis Storage Failed", e)
        raise HTTPException(status_code=503, detail=str(e))

    return record.model_dump(mode="json")


@app.get("/analyses")
def list_analyses(limit: Optional[int] = None, store: HistoryStore = Depends(get_store)):
    """Most recent analyses first"""
    logger.log_api("GET /analyses", {"limit": limit})

    records = storage_call("List Analyses Failed", store.list_recent, limit)
    return [record.model_dump(mode="json") for record in records]


@app.get("/analyses/search")
def search_analyses(q: str = "", store: HistoryStore = Depends(get_store)):
    """Case-insensitive search over patient and file names"""
    logger.log_api("GET /analyses/search", {"q": q})

    records = storage_call("Search Analyses Failed", store.search_by_text, q)
    return [record.model_dump(mode="json") for record in records]


@app.get("/analyses/compare")
def compare_analyses(first: str, second: str, store: HistoryStore = Depends(get_store)):
    """Angle-by-angle change between two stored analyses"""
    logger.log_api("GET /analyses/compare", {"first": first, "second": second})

    first_record = storage_call("Compare Analyses Failed", require_record, store, first)
    second_record = storage_call("Compare Analyses Failed", require_record, store, second)

    return compare_records(first_record, second_record)


@app.get("/analyses/{record_id}")
def get_analysis(record_id: str, store: HistoryStore = Depends(get_store)):
    logger.log_api("GET /analyses/{id}", {"id": record_id})

    record = storage_call("Get Analysis Failed", require_record, store, record_id)
    return record.model_dump(mode="json")


@app.delete("/analyses/{record_id}")
def delete_analysis(record_id: str, store: HistoryStore = Depends(get_store)):
    logger.log_api("DELETE /analyses/{id}", {"id": record_id})

    deleted = storage_call("Delete Analysis Failed", store.delete_by_id, record_id)

    if not deleted:
        raise HTTPException(status_code=404, detail="Analysis not found")

    return {"success": True, "id": record_id}


@app.get("/analyses/{record_id}/exercises")
def get_exercise_protocol(record_id: str, store: HistoryStore = Depends(get_store)):
    """Exercise protocol for the regions affected in a stored analysis"""
    logger.log_api("GET /analyses/{id}/exercises", {"id": record_id})

    record = storage_call("Exercise Protocol Failed", require_record, store, record_id)

    return {
        "id": record.id,
        "exercises": build_exercise_protocol(record.findings)
    }


# ============================================================================
# DASHBOARD & LIVE GUIDE ROUTES
# ============================================================================

@app.get("/dashboard")
def dashboard(store: HistoryStore = Depends(get_store)):
    """Summary statistics over the stored history"""
    logger.log_api("GET /dashboard", {})

    records = storage_call("Dashboard Failed", store.list_recent)
    return summarize_history(records)


@app.post("/posture-guide")
def posture_guide(request: PostureGuideRequest):
    """Quick posture score for a single live frame (nothing is stored)"""
    pose = build_pose(request.landmarks)
    return score_posture(pose)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
