"""Live single-frame posture guide"""
from postural_assessment import landmarks as lm
from postural_assessment.conftest import FRONT_VIEW
from postural_assessment.posture_guide import score_posture


def statuses(result):
    return {guide["id"]: guide["status"] for guide in result["guides"]}


def test_upright_frame_scores_full_marks(front_pose):
    result = score_posture(front_pose)

    assert result["score"] == 100
    assert [guide["id"] for guide in result["guides"]] == [
        "head-alignment", "shoulder-level", "shoulder-posture", "neck-angle",
    ]
    assert set(statuses(result).values()) == {"good"}


def test_head_drifting_forward(pose_factory):
    pose = pose_factory(FRONT_VIEW, overrides={lm.NOSE: (0.56, 0.10)})

    result = score_posture(pose)

    assert statuses(result) == {
        "head-alignment": "warning",
        "shoulder-level": "good",
        "shoulder-posture": "good",
        "neck-angle": "warning",
    }
    assert result["score"] == 80


def test_uneven_shoulders(pose_factory):
    pose = pose_factory(FRONT_VIEW, overrides={lm.LEFT_SHOULDER: (0.60, 0.36)})

    result = score_posture(pose)

    assert statuses(result)["shoulder-level"] == "error"
    assert result["score"] == 80


def test_raised_and_slumped_shoulders(pose_factory):
    raised = pose_factory(FRONT_VIEW, overrides={
        lm.LEFT_SHOULDER: (0.60, 0.22), lm.RIGHT_SHOULDER: (0.40, 0.22),
    })
    slumped = pose_factory(FRONT_VIEW, overrides={
        lm.LEFT_SHOULDER: (0.60, 0.40), lm.RIGHT_SHOULDER: (0.40, 0.40),
    })

    assert statuses(score_posture(raised))["shoulder-posture"] == "warning"
    assert statuses(score_posture(slumped))["shoulder-posture"] == "error"


def test_hidden_nose_only_scores_shoulder_level(pose_factory):
    pose = pose_factory(FRONT_VIEW, hidden=(lm.NOSE,))

    result = score_posture(pose)

    assert statuses(result) == {"shoulder-level": "good"}
    assert result["score"] == 25
