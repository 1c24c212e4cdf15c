import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from config import settings
from api.v1.router import api_router
from core.errors import MealRequestError
from core.rate_limit import RateLimiter, RateLimitMiddleware, RateTier

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
_LOG = logging.getLogger(__name__)


app = FastAPI(title="MealPrepper API", version="1.0.0")

rate_limiter = RateLimiter(max_keys=settings.rate_limit_cache_size)
app.add_middleware(
    RateLimitMiddleware,
    limiter=rate_limiter,
    ai_tier=RateTier("ai", settings.ai_rate_limit, settings.ai_rate_window_s),
    public_tier=RateTier("pub", settings.public_rate_limit, settings.public_rate_window_s),
)
# added last so CORS headers also land on 429s
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


# ───────────────────────── error mapping ────────────────────────────
@app.exception_handler(MealRequestError)
async def meal_request_error(request: Request, exc: MealRequestError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "invalid_input", "message": "Invalid request", "details": details},
    )


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    _LOG.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": "Internal server error"},
    )


@app.get("/health", tags=["meta"])
def health() -> dict[str, str]:
    return {"status": "ok", "env": settings.env_name}
