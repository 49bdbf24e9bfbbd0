"""
Read/Aggregation Orchestrator

Builds the read payload for one company: analysed metric series,
provenance-ranked insights with aggregates, and bilingual narratives.
"""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.errors import FieldError, NotFoundError, StorageError, ValidationError
from ..models.company import Company
from ..models.enums import Theme
from ..models.fact import Fact
from ..models.insight import Insight
from ..models.metric import MetricDictionary
from ..models.source import Source
from .narratives import narrate_series
from .normalize import classify_theme, slugify
from .provenance import DEFAULT_TRUST_SCORE
from .timeseries import analyze_series

logger = logging.getLogger(__name__)
settings = get_settings()


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def resolve_company(db: Session, identifier: str) -> Company:
    """
    Find a company by exact slug, else by case-insensitive name containment.

    Raises NotFoundError when nothing matches.
    """
    ident = (identifier or "").strip()
    if not ident:
        raise NotFoundError("Company not found")

    candidates = {ident.lower(), slugify(ident)} - {""}
    try:
        company = (
            db.query(Company)
            .filter(Company.slug.in_(candidates))
            .order_by(Company.id.asc())
            .first()
        )
        if company is None:
            company = (
                db.query(Company)
                .filter(Company.name.ilike(f"%{_escape_like(ident)}%", escape="\\"))
                .order_by(Company.id.asc())
                .first()
            )
    except SQLAlchemyError as exc:
        raise StorageError("companies", "company lookup failed") from exc

    if company is None:
        raise NotFoundError("Company not found")
    return company


def load_metric_series(
    db: Session,
    company: Company,
    metric_key: Optional[str] = None,
) -> Dict[str, Dict[str, Any]]:
    """
    Analysed series per metric key slug.

    Only facts with a numeric value take part. A fact without as_of_date
    is dated by its source's publication date, else by when it was stored.
    """
    metric_slug = slugify(metric_key) if metric_key else None

    try:
        query = (
            db.query(
                Fact.id,
                Fact.as_of_date,
                Fact.numeric_value,
                Fact.created_at,
                Source.published_at,
                MetricDictionary.key_slug,
                MetricDictionary.label,
                MetricDictionary.bucket,
            )
            .join(MetricDictionary, Fact.metric_id == MetricDictionary.id)
            .join(Source, Fact.source_id == Source.id)
            .filter(Fact.company_id == company.id, Fact.numeric_value.isnot(None))
        )
        if metric_slug:
            query = query.filter(MetricDictionary.key_slug == metric_slug)
        rows = query.order_by(Fact.id.asc()).all()
    except SQLAlchemyError as exc:
        raise StorageError("facts", "metric series lookup failed") from exc

    raw_points: Dict[str, List[tuple]] = defaultdict(list)
    meta: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        point_date: date = row.as_of_date or (
            row.published_at.date() if row.published_at else row.created_at.date()
        )
        raw_points[row.key_slug].append((point_date, float(row.numeric_value)))
        meta.setdefault(row.key_slug, {"label": row.label, "bucket": row.bucket})

    if metric_slug and metric_slug not in meta:
        meta[metric_slug] = {"label": metric_key.strip(), "bucket": None}

    metrics: Dict[str, Dict[str, Any]] = {}
    for key_slug in sorted(meta):
        series = analyze_series(raw_points.get(key_slug, []))
        metrics[key_slug] = {
            "label": meta[key_slug]["label"],
            "bucket": meta[key_slug]["bucket"],
            "points": series,
        }
    return metrics


def _theme_clause(theme: str):
    """
    Known themes (and their synonyms) match the classified theme. Free text
    that maps to no theme matches the label the extractor sent, ignoring case.
    """
    mapped = classify_theme(theme)
    if mapped != Theme.OTHER or slugify(theme) == Theme.OTHER.value:
        return Insight.theme == mapped.value
    return func.lower(Insight.theme_label) == theme.strip().lower()


def load_insights(db: Session, company: Company, theme: Optional[str] = None) -> List[Dict[str, Any]]:
    try:
        query = (
            db.query(
                Insight,
                Source.trust_score,
                Source.publisher_type,
                Source.publisher_name,
                Source.url,
            )
            .join(Source, Insight.source_id == Source.id)
            .filter(Insight.company_id == company.id)
        )
        if theme:
            query = query.filter(_theme_clause(theme))
        rows = query.all()
    except SQLAlchemyError as exc:
        raise StorageError("insights", "insight lookup failed") from exc

    insights: List[Dict[str, Any]] = []
    for insight, trust_score, publisher_type, publisher_name, url in rows:
        trust = trust_score if trust_score is not None else DEFAULT_TRUST_SCORE
        insights.append({
            "id": insight.id,
            "text": insight.text,
            "theme": insight.theme,
            "theme_label": insight.theme_label,
            "confidence": insight.confidence,
            "trust_score": trust,
            "provenance_score": insight.confidence * trust,
            "publisher_name": publisher_name,
            "publisher_type": publisher_type or "other",
            "source_url": url,
            "created_at": insight.created_at,
        })
    return insights


def rank_insights(insights: List[Dict[str, Any]], limit: int) -> List[Dict[str, Any]]:
    """Highest provenance first; ties go to the most recent, then the highest id."""
    ranked = sorted(
        insights,
        key=lambda i: (i["provenance_score"], i["created_at"], i["id"]),
        reverse=True,
    )
    return ranked[:limit]


def aggregate_insights(top: List[Dict[str, Any]]) -> Dict[str, Any]:
    scores = [i["provenance_score"] for i in top]
    return {
        "count": len(top),
        "mean_provenance_score": round(sum(scores) / len(scores), 4) if scores else None,
        "by_publisher_type": dict(Counter(i["publisher_type"] for i in top)),
    }


def _serialize_insight(insight: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(insight)
    out["provenance_score"] = round(out["provenance_score"], 4)
    out["created_at"] = out["created_at"].isoformat() if out["created_at"] else None
    return out


def build_read_payload(
    db: Session,
    company_identifier: str,
    *,
    metric: Optional[str] = None,
    theme: Optional[str] = None,
    limit: Optional[int] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Assemble {company, metrics, insights: {top, aggregates}, narratives}.

    Narratives are only produced when a single metric was requested.
    """
    if limit is None:
        limit = settings.READ_DEFAULT_LIMIT
    if not 1 <= limit <= settings.READ_MAX_LIMIT:
        raise ValidationError(
            [FieldError("limit", f"limit must be between 1 and {settings.READ_MAX_LIMIT}")],
            message="Invalid query parameters",
        )

    company = resolve_company(db, company_identifier)

    metrics = load_metric_series(db, company, metric)
    metrics_out: Dict[str, Any] = {}
    narratives: List[dict] = []
    for key_slug, data in metrics.items():
        points = data["points"]
        metrics_out[key_slug] = {
            "label": data["label"],
            "bucket": data["bucket"],
            "series": [p.as_dict() for p in points],
            "last": points[-1].as_dict() if points else None,
        }
        if metric:
            narratives.extend(narrate_series(key_slug, data["label"], points))

    top = rank_insights(load_insights(db, company, theme), limit)

    logger.info(
        "Read payload built",
        extra={
            "request_id": request_id,
            "company": company.slug,
            "stats": {"metrics": len(metrics_out), "insights": len(top)},
            "step": "read",
        },
    )

    return {
        "company": {"slug": company.slug, "name": company.name, "domain": company.domain},
        "metrics": metrics_out,
        "insights": {
            "top": [_serialize_insight(i) for i in top],
            "aggregates": aggregate_insights(top),
        },
        "narratives": narratives,
    }
