import asyncio
import contextlib
import logging
import os
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .db import engine, Base
from . import models  # noqa: F401  (register tables)
from .routes import essays as r_essays, highlights as r_highlights
from .services.rate_limiter import RateLimitExceeded, limiter

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

RATE_LIMIT_CLEANUP_SECONDS = int(os.getenv("RATE_LIMIT_CLEANUP_SECONDS", "60"))


async def _cleanup_rate_limits():
    while True:
        await asyncio.sleep(RATE_LIMIT_CLEANUP_SECONDS)
        dropped = limiter.cleanup()
        if dropped:
            log.debug("dropped %d expired rate-limit windows", dropped)


@contextlib.asynccontextmanager
async def lifespan(_: FastAPI):
    task = asyncio.create_task(_cleanup_rate_limits())
    try:
        yield
    finally:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


app = FastAPI(title="Essay-Coach API", version="0.1.0", lifespan=lifespan)

# Enable CORS for frontend
_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
)

# Auto-create tables for dev (use Alembic later)
Base.metadata.create_all(bind=engine)

app.include_router(r_highlights.router)
app.include_router(r_essays.router)

@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded(_: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content=exc.body(),
        headers={"Retry-After": str(exc.decision.retry_after)},
    )

@app.get("/")
def health():
    return {"ok": True}
