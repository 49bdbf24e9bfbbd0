# backend/company_intel/schemas/ingest.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List
from urllib.parse import urlparse

from pydantic import BaseModel, ValidationError as PydanticValidationError, field_validator

from ..core.errors import FieldError
from ..services.normalize import slugify

MAX_COMPANY_NAME_LEN = 200
MAX_URL_LEN = 2048
MAX_TITLE_LEN = 1000
MAX_METRIC_KEY_LEN = 200


def _blank_to_none(v):
    if v is None:
        return None
    if isinstance(v, str):
        stripped = v.strip()
        return stripped or None
    return v


def _required_text(v: Any, name: str) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError(f"{name} must not be empty")
    return v.strip()


class SourceIn(BaseModel):
    url: str
    title: str
    doc_type: str | None = None
    published_at: str | None = None
    doc_language: str | None = None
    version: int | None = None
    source_md5: str | None = None

    @field_validator("doc_type", "published_at", "doc_language", "source_md5", mode="before")
    @classmethod
    def _optional_text(cls, v):
        return _blank_to_none(v)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if len(v) > MAX_URL_LEN:
            raise ValueError("source url is too long")
        try:
            parsed = urlparse(v)
            host = parsed.hostname
        except ValueError:
            raise ValueError("source url is not a valid URL")
        if parsed.scheme not in ("http", "https") or not host:
            raise ValueError("source url must be an absolute http(s) URL")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = _required_text(v, "source title")
        return v[:MAX_TITLE_LEN]


class FactIn(BaseModel):
    metric_key: str
    metric_value: str
    as_of_date: str | None = None
    domain: str | None = None
    unit: str | None = None
    qualifier: str | None = None
    source_quote: str | None = None
    extraction_confidence: float | None = None
    impact_score: float | None = None

    @field_validator("as_of_date", "domain", "unit", "qualifier", "source_quote", mode="before")
    @classmethod
    def _optional_text(cls, v):
        return _blank_to_none(v)

    @field_validator("metric_value", mode="before")
    @classmethod
    def _number_as_text(cls, v):
        # Extractors sometimes send bare JSON numbers; keep the raw text form
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("metric_key")
    @classmethod
    def validate_metric_key(cls, v: str) -> str:
        v = _required_text(v, "metric_key")
        if len(v) > MAX_METRIC_KEY_LEN:
            raise ValueError(f"metric_key must be at most {MAX_METRIC_KEY_LEN} characters")
        if not slugify(v):
            raise ValueError("metric_key must contain letters or digits")
        return v

    @field_validator("metric_value")
    @classmethod
    def validate_metric_value(cls, v: str) -> str:
        return _required_text(v, "metric_value")


class InsightIn(BaseModel):
    text: str
    theme: str | None = None
    confidence: float | None = None

    @field_validator("theme", mode="before")
    @classmethod
    def _optional_text(cls, v):
        return _blank_to_none(v)

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _required_text(v, "text")


class NewsIn(BaseModel):
    headline: str
    event_date: str | None = None
    summary: str | None = None
    full_text: str | None = None
    theme: str | None = None
    importance: float | None = None

    @field_validator("event_date", "summary", "full_text", "theme", mode="before")
    @classmethod
    def _optional_text(cls, v):
        return _blank_to_none(v)

    @field_validator("headline")
    @classmethod
    def validate_headline(cls, v: str) -> str:
        return _required_text(v, "headline")


class IngestPayload(BaseModel):
    company: str
    source: SourceIn
    facts: List[FactIn] = []
    insights: List[InsightIn] = []
    news: List[NewsIn] = []

    @field_validator("facts", "insights", "news", mode="before")
    @classmethod
    def _null_to_empty(cls, v):
        return [] if v is None else v

    @field_validator("company")
    @classmethod
    def validate_company(cls, v: str) -> str:
        v = _required_text(v, "company")
        if len(v) > MAX_COMPANY_NAME_LEN:
            raise ValueError(
                f"company must be at most {MAX_COMPANY_NAME_LEN} characters"
            )
        if not slugify(v):
            raise ValueError("company must contain letters or digits")
        return v


class IngestResponse(BaseModel):
    ok: bool = True
    company: str
    source_id: int
    stats: dict[str, dict[str, int]] = {}


@dataclass
class PayloadValidation:
    """Outcome of validating an ingest body: either a payload or field errors."""
    payload: IngestPayload | None = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.payload is not None and not self.errors


def _format_loc(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "body"


def validate_ingest_payload(body: Any) -> PayloadValidation:
    """
    Validate a decoded JSON body.

    Expected failures come back as a list of FieldError; nothing is raised.
    """
    if not isinstance(body, dict):
        return PayloadValidation(errors=[FieldError("body", "expected a JSON object")])

    try:
        payload = IngestPayload.model_validate(body)
    except PydanticValidationError as exc:
        return PayloadValidation(
            errors=[
                FieldError(_format_loc(err["loc"]), err["msg"])
                for err in exc.errors()
            ]
        )
    return PayloadValidation(payload=payload)
