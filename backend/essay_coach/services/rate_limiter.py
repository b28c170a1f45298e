# backend/essay_coach/services/rate_limiter.py
from __future__ import annotations

import logging
import math
import os
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

log = logging.getLogger(__name__)

DEFAULT_LIMITS: Dict[str, Dict[str, int]] = {
    "ai": {"requests": 10, "window_seconds": 60},
    "general": {"requests": 100, "window_seconds": 60},
    "storage": {"requests": 50, "window_seconds": 60},
}


def _default_limits_path() -> Path:
    return Path(__file__).resolve().parents[3] / "configs" / "rate_limits.yaml"


def load_limits() -> Dict[str, Dict[str, int]]:
    configured = os.getenv("RATE_LIMITS_PATH")
    path = Path(configured).expanduser() if configured else _default_limits_path()
    if not path.exists():
        path = _default_limits_path()
    limits = {k: dict(v) for k, v in DEFAULT_LIMITS.items()}
    if not path.exists():
        return limits
    with path.open("r", encoding="utf-8") as f:
        spec: Dict[str, Any] = yaml.safe_load(f) or {}
    for tier, cfg in (spec.get("tiers") or {}).items():
        limits[tier] = {
            "requests": int(cfg.get("requests", DEFAULT_LIMITS["general"]["requests"])),
            "window_seconds": int(cfg.get("window_seconds", DEFAULT_LIMITS["general"]["window_seconds"])),
        }
    return limits


@dataclass
class _Window:
    requests: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after: int = 0


class RateLimitExceeded(Exception):
    def __init__(self, decision: RateLimitDecision):
        super().__init__(f"Rate limit exceeded. Try again in {decision.retry_after} seconds.")
        self.decision = decision

    def body(self) -> Dict[str, Any]:
        return {
            "error": "Too Many Requests",
            "message": str(self),
            "retryAfter": self.decision.retry_after,
        }


class FixedWindowLimiter:
    """Per-(identifier, tier) request counters over fixed time windows."""

    def __init__(self, limits: Dict[str, Dict[str, int]] | None = None):
        self.limits = limits if limits is not None else load_limits()
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def _config(self, tier: str) -> Dict[str, int]:
        return self.limits.get(tier) or self.limits.get("general") or DEFAULT_LIMITS["general"]

    def hit(self, identifier: str, tier: str = "general", now: float | None = None) -> RateLimitDecision:
        now = time.time() if now is None else now
        cfg = self._config(tier)
        limit, window = cfg["requests"], cfg["window_seconds"]
        key = f"{identifier}:{tier}"

        with self._lock:
            w = self._windows.get(key)
            if w is None or now > w.reset_at:
                w = _Window(requests=0, reset_at=now + window)
                self._windows[key] = w

            if w.requests >= limit:
                retry_after = max(math.ceil(w.reset_at - now), 0)
                log.warning("Rate limit exceeded for %s on %s endpoint", identifier, tier)
                return RateLimitDecision(False, limit, 0, w.reset_at, retry_after)

            w.requests += 1
            return RateLimitDecision(True, limit, limit - w.requests, w.reset_at)

    def cleanup(self, now: float | None = None) -> int:
        now = time.time() if now is None else now
        with self._lock:
            expired = [k for k, w in self._windows.items() if now > w.reset_at]
            for k in expired:
                del self._windows[k]
        return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


limiter = FixedWindowLimiter()
