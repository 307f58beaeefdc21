# History Store - content-addressed result cache with a capped history log
import hashlib
import threading
import unicodedata
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.exc import SQLAlchemyError

from postural_assessment import config
from postural_assessment import logger
from postural_assessment.database import analysis_records_table, create_db_engine, init_database
from postural_assessment.errors import FingerprintingFailure, StorageUnavailable
from postural_assessment.models import AnalysisRecord


def fingerprint(media_bytes) -> str:
    """
    SHA-256 of the raw media bytes, hex-encoded
    
    Raises:
        FingerprintingFailure: if the input is not bytes-like or is empty
    """
    if not isinstance(media_bytes, (bytes, bytearray, memoryview)):
        raise FingerprintingFailure(
            f"media must be bytes-like, got {type(media_bytes).__name__}"
        )
    data = bytes(media_bytes)
    if not data:
        raise FingerprintingFailure("media is empty")
    return hashlib.sha256(data).hexdigest()


def record_id_for(fp: str) -> str:
    return f"analysis-{fp[:32]}"


def search_key(text: Optional[str]) -> str:
    """Case- and composition-insensitive form of a name, stored beside it for search"""
    return unicodedata.normalize("NFC", text or "").casefold()


class HistoryStore:
    """
    Keyed store of AnalysisRecords (fingerprint -> record)
    
    Opened once at process start and closed at shutdown. Writes are
    serialized; reads go straight to the database and only ever see
    committed records.
    """

    def __init__(self, database_url: Optional[str] = None, limit: Optional[int] = None):
        self.database_url = database_url or config.DATABASE_URL
        self.limit = config.HISTORY_LIMIT if limit is None else limit
        self.engine = None

        self._write_lock = threading.Lock()
        self._key_locks: Dict[str, list] = {}  # fingerprint -> [lock, waiters]
        self._key_locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> "HistoryStore":
        if self.engine is not None:
            return self

        try:
            engine = create_db_engine(self.database_url)
        except (SQLAlchemyError, ValueError) as e:
            raise StorageUnavailable(f"cannot create engine: {e}") from e

        if not init_database(engine):
            engine.dispose()
            raise StorageUnavailable("cannot create history tables")

        self.engine = engine
        logger.log_db("History Store Opened", {
            "url": self.database_url,
            "limit": self.limit
        })
        return self

    def close(self):
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        logger.log_db("History Store Closed", {})

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    def __enter__(self) -> "HistoryStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _require_engine(self):
        if self.engine is None:
            raise StorageUnavailable("history store is not open")
        return self.engine

    # ------------------------------------------------------------------
    # Per-fingerprint serialization
    # ------------------------------------------------------------------

    @contextmanager
    def fingerprint_lock(self, fp: str) -> Iterator[None]:
        """Serialize compute-and-store for one fingerprint; other fingerprints run in parallel"""
        with self._key_locks_guard:
            entry = self._key_locks.setdefault(fp, [threading.Lock(), 0])
            entry[1] += 1

        try:
            with entry[0]:
                yield
        finally:
            with self._key_locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._key_locks[fp]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _fetch(self, query) -> List[AnalysisRecord]:
        engine = self._require_engine()
        try:
            with engine.connect() as conn:
                rows = conn.execute(query).fetchall()
        except SQLAlchemyError as e:
            logger.log_error("History Read Failed", e)
            raise StorageUnavailable(str(e)) from e
        return [AnalysisRecord.model_validate(row._mapping["record_json"]) for row in rows]

    def _recent_first(self, query):
        return query.order_by(
            analysis_records_table.c.created_at.desc(),
            analysis_records_table.c.seq.desc()
        )

    def lookup(self, fp: str) -> Optional[AnalysisRecord]:
        """Stored record for a fingerprint, or None"""
        query = select(analysis_records_table.c.record_json).where(
            analysis_records_table.c.fingerprint == fp
        )
        records = self._fetch(query)
        return records[0] if records else None

    def get(self, record_id: str) -> Optional[AnalysisRecord]:
        query = select(analysis_records_table.c.record_json).where(
            analysis_records_table.c.id == record_id
        )
        records = self._fetch(query)
        return records[0] if records else None

    def list_recent(self, limit: Optional[int] = None) -> List[AnalysisRecord]:
        """Records, most recently created first"""
        query = self._recent_first(select(analysis_records_table.c.record_json))
        if limit is not None:
            query = query.limit(max(0, limit))
        return self._fetch(query)

    def search_by_text(self, text: str) -> List[AnalysisRecord]:
        """Case-insensitive substring match over display name and file name"""
        needle = search_key((text or "").strip())
        if not needle:
            return self.list_recent()

        table = analysis_records_table
        query = self._recent_first(
            select(table.c.record_json).where(
                or_(
                    table.c.display_name_search.contains(needle, autoescape=True),
                    table.c.file_name_search.contains(needle, autoescape=True),
                )
            )
        )
        return self._fetch(query)

    def count(self) -> int:
        engine = self._require_engine()
        try:
            with engine.connect() as conn:
                return conn.execute(
                    select(func.count()).select_from(analysis_records_table)
                ).scalar()
        except SQLAlchemyError as e:
            raise StorageUnavailable(str(e)) from e

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def store(self, record: AnalysisRecord):
        """
        Insert a record keyed by its fingerprint
        
        Replaces any record with the same fingerprint (or id), then evicts
        the oldest records beyond the retention cap.
        """
        engine = self._require_engine()
        table = analysis_records_table

        with self._write_lock:
            try:
                with engine.begin() as conn:
                    replaced = conn.execute(
                        delete(table).where(
                            or_(table.c.fingerprint == record.fingerprint, table.c.id == record.id)
                        )
                    ).rowcount

                    conn.execute(insert(table).values(
                        id=record.id,
                        fingerprint=record.fingerprint,
                        created_at=record.timestamp,
                        display_name=record.display_name,
                        file_name=record.file_name,
                        display_name_search=search_key(record.display_name),
                        file_name_search=search_key(record.file_name),
                        content_type=record.content_type,
                        confidence_score=record.confidence_score,
                        record_json=record.model_dump(mode="json"),
                    ))

                    overflow = conn.execute(
                        self._recent_first(select(table.c.seq)).offset(self.limit)
                    ).scalars().all()
                    if overflow:
                        conn.execute(delete(table).where(table.c.seq.in_(overflow)))
            except SQLAlchemyError as e:
                logger.log_error("History Write Failed", e, {"fingerprint": record.fingerprint[:12]})
                raise StorageUnavailable(str(e)) from e

        if replaced:
            logger.log_warning("Replaced Existing Analysis", {
                "fingerprint": record.fingerprint[:12],
                "reason": "Re-analysis of the same media"
            })
        if overflow:
            logger.log_db("Evicted Old Analyses", {"count": len(overflow), "limit": self.limit})
        logger.log_db("Record Stored", {"id": record.id, "display_name": record.display_name})

    def delete_by_id(self, record_id: str) -> bool:
        """Delete a record; False when the id is unknown"""
        engine = self._require_engine()

        with self._write_lock:
            try:
                with engine.begin() as conn:
                    deleted = conn.execute(
                        delete(analysis_records_table).where(analysis_records_table.c.id == record_id)
                    ).rowcount
            except SQLAlchemyError as e:
                logger.log_error("History Delete Failed", e, {"id": record_id})
                raise StorageUnavailable(str(e)) from e

        if deleted:
            logger.log_db("Record Deleted", {"id": record_id})
        return deleted > 0
