"""
Content fingerprints and duplicate suppression for facts, insights and news.

Two strategies give the same observable result:

- constraint: insert and let the unique constraints reject repeats; a
  uniqueness violation is a successful no-op.
- precheck: look up existing fingerprints first and only insert the rest.
  The constraints stay in place, so a concurrent writer that lands between
  check and insert is still absorbed as a no-op instead of a duplicate row.
"""
from __future__ import annotations

import hashlib
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Type

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import ConflictIgnored, StorageError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_SQLSTATE = "23505"


class DedupStrategy:
    """Duplicate-suppression strategies."""
    CONSTRAINT = "constraint"
    PRECHECK = "precheck"

    ALL = (CONSTRAINT, PRECHECK)


# ---------------------------------------------------------------------------
# Fingerprints
# ---------------------------------------------------------------------------

def compute_content_hash(text: str) -> str:
    """
    Compute a SHA256 hash of normalized text for deduplication.

    Normalization: lowercase, collapse whitespace.
    """
    normalized = " ".join((text or "").lower().split())
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def fact_fingerprint(metric_key_slug: str, as_of_date: Optional[date], raw_value: str) -> str:
    as_of = as_of_date.isoformat() if as_of_date else ""
    return compute_content_hash(f"{metric_key_slug}|{as_of}|{raw_value or ''}")


def insight_fingerprint(text: str) -> str:
    return compute_content_hash((text or "").strip())


def news_fingerprint(headline: str, summary: Optional[str], full_text: Optional[str]) -> str:
    return compute_content_hash(f"{headline or ''}|{summary or ''}|{full_text or ''}")


# ---------------------------------------------------------------------------
# Duplicate detection
# ---------------------------------------------------------------------------

def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports a unique-constraint violation (vs FK / NOT NULL)."""
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code == UNIQUE_VIOLATION_SQLSTATE
    message = str(orig if orig is not None else exc).lower()
    return "unique constraint" in message or "duplicate key" in message


def drop_batch_duplicates(rows: Iterable[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], int]:
    """Keep the first row per content_fingerprint within one payload."""
    seen: Set[str] = set()
    unique: List[Dict[str, Any]] = []
    dropped = 0
    for row in rows:
        fp = row["content_fingerprint"]
        if fp in seen:
            dropped += 1
            continue
        seen.add(fp)
        unique.append(row)
    return unique, dropped


def existing_fingerprints(
    db: Session,
    model: Type[Any],
    fingerprints: Iterable[str],
    company_id: int,
    source_id: Optional[int] = None,
) -> Set[str]:
    """Fingerprints already stored for this company (and source, when given)."""
    wanted = list(set(fingerprints))
    if not wanted:
        return set()

    query = db.query(model.content_fingerprint).filter(
        model.company_id == company_id,
        model.content_fingerprint.in_(wanted),
    )
    if source_id is not None:
        query = query.filter(model.source_id == source_id)
    return {fp for (fp,) in query.all()}


def filter_new_rows(
    db: Session,
    model: Type[Any],
    rows: List[Dict[str, Any]],
    *,
    strategy: str,
    company_id: int,
    source_id: Optional[int] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    """
    Drop in-batch repeats and, under the precheck strategy, rows whose
    fingerprint is already stored. Returns (rows to insert, skipped count).
    """
    unique, skipped = drop_batch_duplicates(rows)
    if strategy != DedupStrategy.PRECHECK or not unique:
        return unique, skipped

    stored = existing_fingerprints(
        db, model, (r["content_fingerprint"] for r in unique), company_id, source_id
    )
    fresh = [r for r in unique if r["content_fingerprint"] not in stored]
    return fresh, skipped + (len(unique) - len(fresh))


# ---------------------------------------------------------------------------
# Inserts
# ---------------------------------------------------------------------------

def _insert_one(db: Session, model: Type[Any], row: Dict[str, Any], entity: str) -> None:
    try:
        with db.begin_nested():
            db.add(model(**row))
            db.flush()
    except IntegrityError as exc:
        if is_unique_violation(exc):
            raise ConflictIgnored(f"{entity} row already stored") from exc
        raise StorageError(entity, f"{entity} insert failed") from exc
    except SQLAlchemyError as exc:
        raise StorageError(entity, f"{entity} insert failed") from exc


def insert_rows(
    db: Session,
    model: Type[Any],
    rows: List[Dict[str, Any]],
    entity: str,
) -> Tuple[int, int]:
    """
    Insert staged rows; returns (inserted, ignored_as_duplicate).

    The whole batch goes in one flush inside a savepoint. If that flush
    hits a uniqueness violation, the savepoint is rolled back and rows are
    retried one by one so only the duplicates are dropped. Any other
    failure raises StorageError naming `entity`.
    """
    if not rows:
        return 0, 0

    try:
        with db.begin_nested():
            db.add_all([model(**row) for row in rows])
            db.flush()
        return len(rows), 0
    except IntegrityError as exc:
        if not is_unique_violation(exc):
            raise StorageError(entity, f"{entity} insert failed") from exc
        logger.info(
            "Batch insert hit existing rows, retrying row by row",
            extra={"entity": entity, "step": "insert_rows"},
        )
    except SQLAlchemyError as exc:
        raise StorageError(entity, f"{entity} insert failed") from exc

    inserted = ignored = 0
    for row in rows:
        try:
            _insert_one(db, model, row, entity)
            inserted += 1
        except ConflictIgnored:
            ignored += 1
            logger.debug(
                "Skipping duplicate %s row (fingerprint %s...)",
                entity,
                row.get("content_fingerprint", "")[:12],
            )
    return inserted, ignored
