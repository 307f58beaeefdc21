"""HTTP endpoints through FastAPI's TestClient"""
import base64

import pytest
from fastapi.testclient import TestClient

from postural_assessment import config
from postural_assessment import landmarks as lm
from postural_assessment.conftest import FRONT_VIEW, build_pose
from postural_assessment.main import app


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite:///{tmp_path / 'api.db'}")
    with TestClient(app) as test_client:
        yield test_client


def payload(pose=None, media=b"jpeg-bytes", **extra):
    pose = pose or build_pose()
    body = {
        "landmarks": [landmark.model_dump() for landmark in pose.landmarks],
        "media_base64": base64.b64encode(media).decode(),
        "file_name": "front.jpg",
        "content_type": "image/jpeg",
    }
    body.update(extra)
    return body


def post_analysis(client, **kwargs):
    response = client.post("/analyses", json=payload(**kwargs))
    assert response.status_code == 200, response.text
    return response.json()


# ============================================================================
# HEALTH
# ============================================================================

def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


# ============================================================================
# ANALYSES
# ============================================================================

def test_create_and_fetch_analysis(client):
    pose = build_pose(overrides={lm.RIGHT_SHOULDER: (0.60, 0.327)})

    created = post_analysis(client, pose=pose, display_name="Maria")

    assert created["id"].startswith("analysis-")
    assert created["display_name"] == "Maria"
    assert {"deviation", "asymmetry"} <= {f["kind"] for f in created["findings"]}

    fetched = client.get(f"/analyses/{created['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == created


def test_same_media_returns_cached_analysis(client):
    first = post_analysis(client, media=b"same")
    second = post_analysis(client, media=b"same", pose=build_pose(FRONT_VIEW))

    assert second == first
    assert len(client.get("/analyses").json()) == 1


def test_data_url_media_is_accepted(client):
    encoded = base64.b64encode(b"png-bytes").decode()

    response = client.post("/analyses", json=payload(media_base64=f"data:image/png;base64,{encoded}"))

    assert response.status_code == 200


@pytest.mark.parametrize("overrides", [
    {"media_base64": ""},
    {"media_base64": "%%% not base64 %%%"},
    {"content_type": "image/gif"},
    {"content_type": ""},
    {"content_type": "application/pdf"},
])
def test_bad_uploads_are_rejected(client, overrides):
    response = client.post("/analyses", json=payload(**overrides))

    assert response.status_code == 400


def test_content_type_is_required(client):
    body = payload()
    del body["content_type"]

    response = client.post("/analyses", json=body)

    assert response.status_code == 422
    assert client.get("/analyses").json() == []


def test_wrong_landmark_count_is_rejected(client):
    body = payload()
    body["landmarks"] = body["landmarks"][:10]

    response = client.post("/analyses", json=body)

    assert response.status_code == 400


def test_list_search_and_delete(client):
    maria = post_analysis(client, media=b"a", display_name="Maria Souza")
    post_analysis(client, media=b"b", display_name="John Smith", file_name="knee.mp4",
                  content_type="video/mp4")

    assert len(client.get("/analyses").json()) == 2
    assert len(client.get("/analyses", params={"limit": 1}).json()) == 1
    assert [r["display_name"] for r in client.get("/analyses/search", params={"q": "maria"}).json()] == [
        "Maria Souza"
    ]

    assert client.delete(f"/analyses/{maria['id']}").status_code == 200
    assert client.get(f"/analyses/{maria['id']}").status_code == 404
    assert client.delete(f"/analyses/{maria['id']}").status_code == 404


def test_unknown_analysis(client):
    assert client.get("/analyses/analysis-missing").status_code == 404
    assert client.get("/analyses/analysis-missing/exercises").status_code == 404


# ============================================================================
# DERIVED VIEWS
# ============================================================================

def test_exercise_protocol(client):
    forward_head = build_pose(overrides={lm.LEFT_EAR: (0.45, 0.183), lm.RIGHT_EAR: (0.45, 0.183)})
    created = post_analysis(client, pose=forward_head)

    response = client.get(f"/analyses/{created['id']}/exercises")

    assert response.status_code == 200
    assert [e["name"] for e in response.json()["exercises"]] == [
        "Cervical Retraction", "Posterior Chain Stretch",
    ]


def test_compare(client):
    first = post_analysis(client, media=b"before")
    second = post_analysis(client, media=b"after",
                           pose=build_pose(overrides={lm.LEFT_EAR: (0.45, 0.183), lm.RIGHT_EAR: (0.45, 0.183)}))

    response = client.get("/analyses/compare", params={"first": first["id"], "second": second["id"]})

    assert response.status_code == 200
    body = response.json()
    assert body["finding_counts"]["first"] == 0
    assert body["finding_counts"]["second"] == 5
    assert "Cervical Flexion" in body["angle_differences"]

    missing = client.get("/analyses/compare", params={"first": first["id"], "second": "analysis-missing"})
    assert missing.status_code == 404


def test_dashboard(client):
    post_analysis(client, media=b"one")
    post_analysis(client, media=b"two")

    summary = client.get("/dashboard").json()

    assert summary["total_analyses"] == 2
    assert summary["this_week"] == 2
    assert summary["confidence_distribution"]["high"] == 100


def test_posture_guide(client):
    pose = build_pose(FRONT_VIEW)
    body = {"landmarks": [landmark.model_dump() for landmark in pose.landmarks]}

    response = client.post("/posture-guide", json=body)

    assert response.status_code == 200
    assert response.json()["score"] == 100
    assert client.get("/analyses").json() == []
