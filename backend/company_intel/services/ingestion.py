"""
Ingestion Orchestrator

Resolves the company and source of an ingest payload, normalizes and
fingerprints its facts / insights / news, and writes them append-only.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Type

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.errors import StorageError
from ..models.company import Company
from ..models.enums import PublisherType
from ..models.fact import Fact
from ..models.insight import Insight
from ..models.metric import MetricDictionary
from ..models.news_event import NewsEvent
from ..models.source import Source
from ..schemas.ingest import FactIn, IngestPayload, InsightIn, NewsIn
from .dedup import (
    DedupStrategy,
    fact_fingerprint,
    filter_new_rows,
    insert_rows,
    insight_fingerprint,
    is_unique_violation,
    news_fingerprint,
)
from .normalize import (
    classify_doc_type,
    classify_theme,
    normalize_unit,
    normalize_unit_fraction,
    parse_number,
    safe_date,
    safe_datetime,
    slugify,
)
from .provenance import DEFAULT_TRUST_SCORE, Provenance, classify_provenance

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class EntityStats:
    inserted: int = 0
    skipped: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"inserted": self.inserted, "skipped": self.skipped}


@dataclass
class IngestResult:
    company_slug: str
    source_id: int
    facts: EntityStats = field(default_factory=EntityStats)
    insights: EntityStats = field(default_factory=EntityStats)
    news: EntityStats = field(default_factory=EntityStats)

    @property
    def stats(self) -> Dict[str, Dict[str, int]]:
        return {
            "facts": self.facts.as_dict(),
            "insights": self.insights.as_dict(),
            "news": self.news.as_dict(),
        }


# ---------------------------------------------------------------------------
# Company / Source resolution
# ---------------------------------------------------------------------------

def _get_or_create(
    db: Session,
    model: Type[Any],
    lookup: Dict[str, Any],
    values: Dict[str, Any],
    entity: str,
) -> Tuple[Any, bool]:
    """
    Select by `lookup`, create when absent.

    Two requests racing on the same key both try the insert; the loser gets
    a uniqueness violation and re-selects the winner's row.
    """
    try:
        row = db.query(model).filter_by(**lookup).first()
        if row is not None:
            return row, False

        try:
            with db.begin_nested():
                row = model(**lookup, **values)
                db.add(row)
                db.flush()
            return row, True
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise StorageError(entity, f"{entity} upsert failed") from exc

        row = db.query(model).filter_by(**lookup).first()
    except SQLAlchemyError as exc:
        raise StorageError(entity, f"{entity} upsert failed") from exc

    if row is None:
        raise StorageError(entity, f"{entity} upsert failed")
    return row, False


def get_or_create_company(db: Session, name: str, domain: Optional[str] = None) -> Company:
    company, created = _get_or_create(
        db,
        Company,
        lookup={"slug": slugify(name)},
        values={"name": name.strip(), "domain": domain},
        entity="companies",
    )
    if created:
        logger.info("Created company", extra={"company": company.slug, "step": "company"})
    return company


def get_or_create_source(
    db: Session,
    company: Company,
    source_in,
    provenance: Provenance,
) -> Source:
    """
    Resolve the (company, url) source row.

    Publisher and trust fields are only written when the row is created;
    re-ingesting a URL keeps the attribution it was first stored with.
    """
    source, created = _get_or_create(
        db,
        Source,
        lookup={"company_id": company.id, "url": source_in.url},
        values={
            "title": source_in.title,
            "doc_type": classify_doc_type(source_in.doc_type).value,
            "published_at": safe_datetime(source_in.published_at),
            "language": source_in.doc_language,
            "version": source_in.version if source_in.version is not None else 1,
            "content_fingerprint": source_in.source_md5,
            "publisher_domain": provenance.publisher_domain,
            "publisher_name": provenance.publisher_name,
            "publisher_type": provenance.publisher_type.value,
            "is_official": provenance.is_official,
            "trust_score": provenance.trust_score,
        },
        entity="sources",
    )
    if created:
        logger.info(
            "Created source",
            extra={
                "company": company.slug,
                "source_id": source.id,
                "step": "source",
            },
        )
    return source


# ---------------------------------------------------------------------------
# Metric dictionary
# ---------------------------------------------------------------------------

def upsert_metric_dictionary(
    db: Session,
    facts: List[FactIn],
    primary_source: Optional[str] = None,
) -> Dict[str, int]:
    """
    Make sure every metric referenced by `facts` has a dictionary entry.

    New keys are written in a single INSERT .. ON CONFLICT DO NOTHING, then
    all ids are read back in one query. Returns {key_slug: metric_id}.
    """
    entries: Dict[str, Dict[str, Any]] = {}
    for f in facts:
        key_slug = slugify(f.metric_key)
        if key_slug not in entries:
            entries[key_slug] = {
                "key_slug": key_slug,
                "label": f.metric_key.strip(),
                "bucket": f.domain,
                "primary_source": primary_source,
            }
    if not entries:
        return {}

    try:
        dialect = db.get_bind().dialect.name
        if dialect in ("postgresql", "sqlite"):
            insert_fn = pg_insert if dialect == "postgresql" else sqlite_insert
            stmt = (
                insert_fn(MetricDictionary)
                .values(list(entries.values()))
                .on_conflict_do_nothing(index_elements=["key_slug"])
            )
            db.execute(stmt)
        else:
            known = {
                slug
                for (slug,) in db.query(MetricDictionary.key_slug)
                .filter(MetricDictionary.key_slug.in_(list(entries)))
                .all()
            }
            db.add_all(
                MetricDictionary(**values)
                for slug, values in entries.items()
                if slug not in known
            )
            db.flush()

        ids = dict(
            db.query(MetricDictionary.key_slug, MetricDictionary.id)
            .filter(MetricDictionary.key_slug.in_(list(entries)))
            .all()
        )
    except SQLAlchemyError as exc:
        raise StorageError("metrics_dictionary", "metrics_dictionary upsert failed") from exc

    missing = set(entries) - set(ids)
    if missing:
        raise StorageError(
            "metrics_dictionary",
            f"metrics_dictionary upsert failed for {sorted(missing)}",
        )
    return ids


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------

def build_fact_rows(
    facts: List[FactIn],
    company_id: int,
    source_id: int,
    metric_ids: Dict[str, int],
) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for f in facts:
        key_slug = slugify(f.metric_key)
        as_of = safe_date(f.as_of_date)
        impact = normalize_unit_fraction(f.impact_score)
        rows.append({
            "company_id": company_id,
            "source_id": source_id,
            "metric_id": metric_ids[key_slug],
            "as_of_date": as_of,
            "metric_key": f.metric_key,
            "raw_value": f.metric_value,
            "numeric_value": parse_number(f.metric_value),
            "unit": normalize_unit(f.unit, f.metric_value),
            "qualifier": f.qualifier,
            "quote": f.source_quote,
            "extraction_confidence": normalize_unit_fraction(f.extraction_confidence),
            "impact_score": impact if impact is not None else 0.0,
            "content_fingerprint": fact_fingerprint(key_slug, as_of, f.metric_value),
        })
    return rows


def build_insight_rows(
    insights: List[InsightIn],
    company_id: int,
    source_id: int,
    trust_score: float,
    default_confidence: float,
) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for i in insights:
        confidence = normalize_unit_fraction(i.confidence)
        if confidence is None:
            confidence = default_confidence
        rows.append({
            "company_id": company_id,
            "source_id": source_id,
            "theme": classify_theme(i.theme).value,
            "theme_label": i.theme,
            "text": i.text,
            "confidence": confidence,
            "provenance_score": confidence * trust_score,
            "content_fingerprint": insight_fingerprint(i.text),
        })
    return rows


def build_news_rows(
    news: List[NewsIn],
    company_id: int,
    source: Source,
    max_full_text: int,
    default_importance: float,
) -> List[Dict[str, Any]]:
    fallback_date = source.published_at.date() if source.published_at else date.today()
    rows: List[Dict[str, Any]] = []
    for n in news:
        full_text = n.full_text[:max_full_text] if n.full_text else None
        importance = normalize_unit_fraction(n.importance)
        rows.append({
            "company_id": company_id,
            "source_id": source.id,
            "event_date": safe_date(n.event_date) or fallback_date,
            "headline": n.headline,
            "summary": n.summary,
            "full_text": full_text,
            "theme": classify_theme(n.theme).value,
            "importance": importance if importance is not None else default_importance,
            "content_fingerprint": news_fingerprint(n.headline, n.summary, full_text),
        })
    return rows


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def _write_entity(
    db: Session,
    model: Type[Any],
    rows: List[Dict[str, Any]],
    entity: str,
    *,
    strategy: str,
    company_id: int,
    source_id: Optional[int],
) -> EntityStats:
    if not rows:
        return EntityStats()
    try:
        fresh, skipped = filter_new_rows(
            db, model, rows, strategy=strategy, company_id=company_id, source_id=source_id
        )
    except SQLAlchemyError as exc:
        raise StorageError(entity, f"{entity} duplicate check failed") from exc
    inserted, ignored = insert_rows(db, model, fresh, entity)
    return EntityStats(inserted=inserted, skipped=skipped + ignored)


def ingest_payload(
    db: Session,
    payload: IngestPayload,
    *,
    strategy: Optional[str] = None,
    request_id: Optional[str] = None,
) -> IngestResult:
    """
    Write one validated ingest payload.

    1. Classify the source URL and resolve / create the company
    2. Resolve / create the (company, url) source
    3. Upsert the metric dictionary for all fact keys in one statement
    4. Normalize + fingerprint facts, insights and news
    5. Insert what is new; duplicates are skipped, never overwritten

    The request is one transaction: a storage failure other than a
    duplicate rolls everything back and raises StorageError.
    """
    strategy = strategy or settings.DEDUP_STRATEGY
    if strategy not in DedupStrategy.ALL:
        raise ValueError(f"Unknown dedup strategy: {strategy}")

    provenance = classify_provenance(payload.source.url)
    issuer_domain = (
        provenance.publisher_domain
        if provenance.publisher_type == PublisherType.ISSUER
        else None
    )

    try:
        company = get_or_create_company(db, payload.company, domain=issuer_domain)
        source = get_or_create_source(db, company, payload.source, provenance)
        trust_score = source.trust_score if source.trust_score is not None else DEFAULT_TRUST_SCORE

        result = IngestResult(company_slug=company.slug, source_id=source.id)

        if payload.facts:
            metric_ids = upsert_metric_dictionary(
                db, payload.facts, primary_source=source.publisher_name
            )
            result.facts = _write_entity(
                db,
                Fact,
                build_fact_rows(payload.facts, company.id, source.id, metric_ids),
                "facts",
                strategy=strategy,
                company_id=company.id,
                source_id=None,  # facts dedupe across sources of the same company
            )

        if payload.insights:
            result.insights = _write_entity(
                db,
                Insight,
                build_insight_rows(
                    payload.insights,
                    company.id,
                    source.id,
                    trust_score,
                    settings.DEFAULT_INSIGHT_CONFIDENCE,
                ),
                "insights",
                strategy=strategy,
                company_id=company.id,
                source_id=source.id,
            )

        if payload.news:
            result.news = _write_entity(
                db,
                NewsEvent,
                build_news_rows(
                    payload.news,
                    company.id,
                    source,
                    settings.NEWS_FULL_TEXT_MAX_CHARS,
                    settings.DEFAULT_NEWS_IMPORTANCE,
                ),
                "news_events",
                strategy=strategy,
                company_id=company.id,
                source_id=source.id,
            )

        try:
            db.commit()
        except SQLAlchemyError as exc:
            raise StorageError("ingest", "ingest commit failed") from exc

    except StorageError as exc:
        db.rollback()
        logger.error(
            "Ingest failed: %s",
            exc.message,
            exc_info=exc.__cause__ is not None,
            extra={
                "request_id": request_id,
                "company": slugify(payload.company),
                "entity": exc.entity,
                "step": "ingest",
            },
        )
        raise

    logger.info(
        "Ingest completed",
        extra={
            "request_id": request_id,
            "company": result.company_slug,
            "source_id": result.source_id,
            "stats": result.stats,
            "step": "ingest",
        },
    )
    return result
