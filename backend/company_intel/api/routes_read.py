from uuid import uuid4
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..core.config import get_settings
from ..core.db import get_db
from ..core.errors import NotFoundError, StorageError, ValidationError
from ..services.read_model import build_read_payload

router = APIRouter(tags=["read"])

settings = get_settings()
logger = logging.getLogger(__name__)


@router.get("/read")
def read_company(
    company: str = Query(..., min_length=1, max_length=200),
    metric: str | None = Query(None, max_length=200),
    theme: str | None = Query(None, max_length=100),
    limit: int = Query(settings.READ_DEFAULT_LIMIT, ge=1, le=settings.READ_MAX_LIMIT),
    db: Session = Depends(get_db),
):
    """
    Company read model: metric series with period-over-period analytics,
    provenance-ranked insights, and EN/FR narratives for a requested metric.
    """
    request_id = str(uuid4())

    try:
        return build_read_payload(
            db,
            company,
            metric=metric,
            theme=theme,
            limit=limit,
            request_id=request_id,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail={"error": e.message, "errors": [err.as_dict() for err in e.errors]},
        )
    except StorageError as e:
        logger.exception(
            "Read failed for %s: %s", company, e.message,
            extra={"request_id": request_id, "entity": e.entity, "step": "read"},
        )
        raise HTTPException(
            status_code=500,
            detail={"error": e.message, "entity": e.entity},
        )
