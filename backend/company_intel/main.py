from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .core.config import get_settings
from .core.logging import configure_logging
from .api.routes_ingest import router as ingest_router
from .api.routes_read import router as read_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="Company Intelligence API")

# CORS:
# - In prod, FRONTEND_ORIGIN is required and we never fall back to "*".
# - In non-prod, wide-open CORS is only enabled if CORS_ALLOW_ALL_ORIGINS=True.
if settings.ENV.lower() == "prod":
    if not settings.FRONTEND_ORIGIN:
        raise RuntimeError(
            "FRONTEND_ORIGIN must be set in production; refusing to start with wide-open CORS."
        )
    origins = [
        o.strip()
        for o in settings.FRONTEND_ORIGIN.split(",")
        if o.strip()
    ]
else:
    if settings.CORS_ALLOW_ALL_ORIGINS:
        origins = ["*"]
    elif settings.FRONTEND_ORIGIN:
        origins = [
            o.strip()
            for o in settings.FRONTEND_ORIGIN.split(",")
            if o.strip()
        ]
    else:
        origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=False,
)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # Bad query parameters are a client error like any other: 400, not 422
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ())[1:]) or "request",
            "message": err.get("msg", "invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": {"error": "Invalid request", "errors": errors}},
    )


@app.get(f"{settings.API_PREFIX}/ping", response_class=PlainTextResponse)
def ping() -> str:
    return "pong"


app.include_router(ingest_router, prefix=settings.API_PREFIX)
app.include_router(read_router, prefix=settings.API_PREFIX)
