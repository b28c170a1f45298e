import math
import os
from fastapi import Depends, Header, HTTPException, Request, Response
from sqlalchemy.orm import Session
from .db import get_db
from .services.rate_limiter import RateLimitExceeded, limiter

_API = os.getenv("API_KEY")

def db_dep(db: Session = Depends(get_db)):
    return db

# Optional API key gate
def require_api_key(x_api_key: str = Header(None)):
    if _API and x_api_key != _API:
        raise HTTPException(status_code=401, detail="Unauthorized")

def client_id(request: Request) -> str:
    fwd = request.headers.get("x-forwarded-for")
    if fwd:
        return fwd.split(",")[0].strip()
    return request.client.host if request.client else "127.0.0.1"

def rate_limit(tier: str = "general"):
    def _dep(request: Request, response: Response):
        d = limiter.hit(client_id(request), tier)
        if not d.allowed:
            # rendered by the app-level handler in main.py
            raise RateLimitExceeded(d)
        response.headers["X-RateLimit-Limit"] = str(d.limit)
        response.headers["X-RateLimit-Remaining"] = str(d.remaining)
        response.headers["X-RateLimit-Reset"] = str(math.ceil(d.reset_at))
    return _dep
