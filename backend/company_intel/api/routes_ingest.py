from uuid import uuid4
import json
import logging
import secrets
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Security
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.db import get_db
from ..core.errors import AuthError, ParseError, StorageError
from ..schemas.ingest import IngestResponse, validate_ingest_payload
from ..services.ingestion import ingest_payload

router = APIRouter(tags=["ingest"])

settings = get_settings()
bearer_scheme = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def check_ingest_token(provided: str | None, expected: str | None) -> None:
    """
    Raise AuthError unless `provided` equals the configured token.

    Compared in constant time; an unconfigured token rejects every caller.
    """
    if not expected:
        raise AuthError("Ingest token not configured")
    if not provided or not secrets.compare_digest(
        provided.encode("utf-8"), expected.encode("utf-8")
    ):
        raise AuthError("Unauthorized")


def verify_ingest_token(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> None:
    try:
        check_ingest_token(
            credentials.credentials if credentials else None,
            settings.INGEST_TOKEN,
        )
    except AuthError as e:
        if not settings.INGEST_TOKEN:
            logger.warning("INGEST_TOKEN is not set; rejecting ingest call")
        raise HTTPException(
            status_code=401,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )


def parse_json_body(raw: bytes) -> Any:
    if not raw or not raw.strip():
        raise ParseError("Request body is empty")
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError) as e:
        raise ParseError(f"Request body is not valid JSON: {e}")


@router.post("/ingest", response_model=IngestResponse)
async def ingest(
    request: Request,
    db: Session = Depends(get_db),
    _: None = Depends(verify_ingest_token),
):
    # Body is read only after the token check passed
    request_id = str(uuid4())

    try:
        body = parse_json_body(await request.body())
    except ParseError as e:
        raise HTTPException(status_code=400, detail={"error": e.message})

    validation = validate_ingest_payload(body)
    if not validation.ok:
        logger.warning(
            "Rejected ingest payload with %d errors",
            len(validation.errors),
            extra={"request_id": request_id, "step": "validate"},
        )
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Invalid payload",
                "errors": [err.as_dict() for err in validation.errors],
            },
        )

    try:
        # Blocking DB work goes to the threadpool so other requests keep flowing
        result = await run_in_threadpool(
            ingest_payload, db, validation.payload, request_id=request_id
        )
    except StorageError as e:
        raise HTTPException(
            status_code=500,
            detail={"error": e.message, "entity": e.entity},
        )
    except Exception as e:
        logger.exception(
            "Ingest failed: %s", e,
            extra={"request_id": request_id, "step": "ingest"},
        )
        raise HTTPException(status_code=500, detail={"error": "Ingest failed"})

    return IngestResponse(
        company=result.company_slug,
        source_id=result.source_id,
        stats=result.stats,
    )
