"""History store: fingerprinting, persistence, retention cap, search"""
from datetime import datetime, timedelta, timezone

import pytest

from postural_assessment import config
from postural_assessment.errors import FingerprintingFailure, StorageUnavailable
from postural_assessment.history_store import HistoryStore, fingerprint, record_id_for
from postural_assessment.models import AnalysisRecord, Deviation, RecommendationSet

START = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


def make_record(pose, index, when=None, display_name="Anonymous patient", file_name="", confidence=0.9):
    fp = fingerprint(f"media-{index}".encode())
    return AnalysisRecord(
        id=record_id_for(fp),
        fingerprint=fp,
        timestamp=when or START + timedelta(minutes=index),
        display_name=display_name,
        file_name=file_name,
        content_type="image/jpeg",
        pose=pose,
        angles={"Cervical Flexion": 10.0 + index},
        findings=[Deviation(
            rule="cervical",
            pattern="cervical_anteriorization",
            segment="Cervical spine",
            description="Forward head posture",
            severity="moderate",
            compensation="Upper cervical hyperextension (C1-C2)",
        )],
        observations=["Craniovertebral angle: 38.0° (normal: 48-52°)"],
        recommendations=RecommendationSet(strengthening=["Deep neck flexor strengthening"]),
        confidence_score=confidence,
    )


# ============================================================================
# FINGERPRINT
# ============================================================================

def test_fingerprint_is_stable_sha256():
    fp = fingerprint(b"same bytes")

    assert fp == fingerprint(bytearray(b"same bytes"))
    assert len(fp) == 64
    assert fp != fingerprint(b"other bytes")
    assert record_id_for(fp) == f"analysis-{fp[:32]}"


def test_single_bit_flips_change_the_fingerprint():
    media = bytes(range(256)) * 16
    original = fingerprint(media)

    seen = {original}
    for position in range(0, len(media), 37):
        for bit in (0, 7):
            flipped = bytearray(media)
            flipped[position] ^= 1 << bit
            seen.add(fingerprint(flipped))

    flips = len(range(0, len(media), 37)) * 2
    assert len(seen) == flips + 1


def test_appending_a_byte_changes_the_fingerprint():
    assert fingerprint(b"frame") != fingerprint(b"frame\x00")


@pytest.mark.parametrize("media", [b"", None, "not bytes"])
def test_fingerprint_rejects_unusable_media(media):
    with pytest.raises(FingerprintingFailure):
        fingerprint(media)


# ============================================================================
# STORE / LOOKUP
# ============================================================================

def test_store_then_lookup_round_trip(store, side_pose):
    record = make_record(side_pose, 1)
    store.store(record)

    loaded = store.lookup(record.fingerprint)

    assert loaded == record
    assert isinstance(loaded.findings[0], Deviation)
    assert store.get(record.id) == record


def test_lookup_miss_returns_none(store):
    assert store.lookup(fingerprint(b"never stored")) is None
    assert store.get("analysis-unknown") is None


def test_same_fingerprint_replaces_record(store, side_pose):
    first = make_record(side_pose, 1, display_name="First")
    second = make_record(side_pose, 1, display_name="Second", when=START + timedelta(hours=1))

    store.store(first)
    store.store(second)

    assert store.count() == 1
    assert store.lookup(first.fingerprint).display_name == "Second"


def test_records_survive_reopen(tmp_path, side_pose):
    url = f"sqlite:///{tmp_path / 'persist.db'}"
    record = make_record(side_pose, 7)

    with HistoryStore(url) as history:
        history.store(record)

    with HistoryStore(url) as history:
        assert history.lookup(record.fingerprint) == record


def test_closed_store_is_unavailable(tmp_path):
    history = HistoryStore(f"sqlite:///{tmp_path / 'closed.db'}")

    with pytest.raises(StorageUnavailable):
        history.lookup(fingerprint(b"x"))


def test_unreachable_database_fails_to_open():
    history = HistoryStore("notadialect://nowhere")

    with pytest.raises(StorageUnavailable):
        history.open()


# ============================================================================
# RETENTION CAP
# ============================================================================

def test_cap_keeps_most_recent_fifty(store, side_pose):
    records = [make_record(side_pose, i) for i in range(60)]
    for record in records:
        store.store(record)

    assert store.count() == 50
    for old in records[:10]:
        assert store.lookup(old.fingerprint) is None
    for kept in records[10:]:
        assert store.lookup(kept.fingerprint) is not None


def test_list_recent_is_newest_first(store, side_pose):
    for i in range(5):
        store.store(make_record(side_pose, i))

    recent = store.list_recent()

    assert [r.angles["Cervical Flexion"] for r in recent] == [14.0, 13.0, 12.0, 11.0, 10.0]
    assert len(store.list_recent(limit=2)) == 2


def test_limit_defaults_to_config_and_keeps_zero(tmp_path):
    url = f"sqlite:///{tmp_path / 'limits.db'}"

    assert HistoryStore(url).limit == config.HISTORY_LIMIT
    assert HistoryStore(url, limit=0).limit == 0


def test_equal_timestamps_evict_first_inserted(tmp_path, side_pose):
    with HistoryStore(f"sqlite:///{tmp_path / 'ties.db'}", limit=3) as history:
        records = [make_record(side_pose, i, when=START) for i in range(4)]
        for record in records:
            history.store(record)

        assert history.lookup(records[0].fingerprint) is None
        assert history.count() == 3


# ============================================================================
# SEARCH / DELETE
# ============================================================================

def test_search_by_display_name_and_file_name(store, side_pose):
    store.store(make_record(side_pose, 1, display_name="Maria Souza", file_name="front.jpg"))
    store.store(make_record(side_pose, 2, display_name="John Smith", file_name="side_maria.png"))
    store.store(make_record(side_pose, 3, display_name="Ana Lima", file_name="knee.mp4"))

    assert {r.display_name for r in store.search_by_text("MARIA")} == {"Maria Souza", "John Smith"}
    assert [r.display_name for r in store.search_by_text(".mp4")] == ["Ana Lima"]
    assert store.search_by_text("nobody") == []
    assert len(store.search_by_text("")) == 3


def test_search_folds_case_beyond_ascii(store, side_pose):
    store.store(make_record(side_pose, 1, display_name="Ângela Souza", file_name="Ávila.jpg"))
    store.store(make_record(side_pose, 2, display_name="Strauß", file_name="back.png"))

    assert [r.display_name for r in store.search_by_text("Ângela")] == ["Ângela Souza"]
    assert [r.display_name for r in store.search_by_text("ângela")] == ["Ângela Souza"]
    assert [r.file_name for r in store.search_by_text("ÁVILA")] == ["Ávila.jpg"]
    assert [r.display_name for r in store.search_by_text("STRAUSS")] == ["Strauß"]
    assert [r.display_name for r in store.search_by_text("A\u0302ngela")] == ["Ângela Souza"]


def test_search_treats_wildcards_literally(store, side_pose):
    store.store(make_record(side_pose, 1, file_name="scan_01.jpg"))
    store.store(make_record(side_pose, 2, file_name="scan-01.jpg"))

    assert [r.file_name for r in store.search_by_text("scan_")] == ["scan_01.jpg"]


def test_delete_by_id(store, side_pose):
    record = make_record(side_pose, 1)
    store.store(record)

    assert store.delete_by_id(record.id) is True
    assert store.lookup(record.fingerprint) is None
    assert store.delete_by_id(record.id) is False
