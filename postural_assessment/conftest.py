# Shared pytest fixtures - synthetic poses and throwaway history stores
import pytest

from postural_assessment import config
from postural_assessment import landmarks as lm
from postural_assessment.history_store import HistoryStore
from postural_assessment.models import Landmark, Pose

# Upright subject seen from the side; ears sit forward of the shoulders
# so the craniovertebral angle is ~50 degrees
SIDE_VIEW = {
    lm.NOSE: (0.45, 0.17),
    lm.LEFT_EAR: (0.50, 0.181), lm.RIGHT_EAR: (0.50, 0.181),
    lm.LEFT_SHOULDER: (0.60, 0.30), lm.RIGHT_SHOULDER: (0.60, 0.30),
    lm.LEFT_ELBOW: (0.60, 0.45), lm.RIGHT_ELBOW: (0.60, 0.45),
    lm.LEFT_WRIST: (0.60, 0.58), lm.RIGHT_WRIST: (0.60, 0.58),
    lm.LEFT_HIP: (0.60, 0.60), lm.RIGHT_HIP: (0.60, 0.60),
    lm.LEFT_KNEE: (0.60, 0.80), lm.RIGHT_KNEE: (0.60, 0.80),
    lm.LEFT_ANKLE: (0.60, 1.00), lm.RIGHT_ANKLE: (0.60, 1.00),
    lm.LEFT_FOOT_INDEX: (0.55, 1.00), lm.RIGHT_FOOT_INDEX: (0.55, 1.00),
}

# Upright subject facing the camera, subject's left on the image right
FRONT_VIEW = {
    lm.NOSE: (0.50, 0.10),
    lm.LEFT_EAR: (0.54, 0.12), lm.RIGHT_EAR: (0.46, 0.12),
    lm.LEFT_SHOULDER: (0.60, 0.30), lm.RIGHT_SHOULDER: (0.40, 0.30),
    lm.LEFT_ELBOW: (0.62, 0.45), lm.RIGHT_ELBOW: (0.38, 0.45),
    lm.LEFT_WRIST: (0.63, 0.58), lm.RIGHT_WRIST: (0.37, 0.58),
    lm.LEFT_HIP: (0.55, 0.60), lm.RIGHT_HIP: (0.45, 0.60),
    lm.LEFT_KNEE: (0.55, 0.80), lm.RIGHT_KNEE: (0.45, 0.80),
    lm.LEFT_ANKLE: (0.55, 1.00), lm.RIGHT_ANKLE: (0.45, 1.00),
    lm.LEFT_FOOT_INDEX: (0.57, 1.02), lm.RIGHT_FOOT_INDEX: (0.43, 1.02),
}


def build_pose(base=None, overrides=None, hidden=(), visibility=0.9) -> Pose:
    """
    Pose from a base layout
    
    Args:
        base: index -> (x, y) layout, SIDE_VIEW by default
        overrides: index -> (x, y) or (x, y, z) replacing the base position
        hidden: indices given visibility 0.3
        visibility: visibility of every other landmark
    """
    layout = dict(SIDE_VIEW if base is None else base)
    layout.update(overrides or {})

    landmarks = []
    for index in range(config.POSE_LANDMARK_COUNT):
        coords = layout.get(index, (0.5, 0.5))
        x, y = coords[0], coords[1]
        z = coords[2] if len(coords) > 2 else 0.0
        landmarks.append(Landmark(
            x=x, y=y, z=z,
            visibility=0.3 if index in hidden else visibility,
        ))
    return Pose(landmarks=landmarks)


@pytest.fixture
def side_pose() -> Pose:
    return build_pose()


@pytest.fixture
def front_pose() -> Pose:
    return build_pose(FRONT_VIEW)


@pytest.fixture
def pose_factory():
    return build_pose


@pytest.fixture
def store(tmp_path):
    """Open history store backed by a fresh SQLite file"""
    history = HistoryStore(f"sqlite:///{tmp_path / 'history.db'}")
    history.open()
    yield history
    history.close()


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch):
    monkeypatch.setattr(config, "LOG_LEVEL", "QUIET")
