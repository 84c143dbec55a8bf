"""FastAPI service that collects taps and reports tempo estimates."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Query

from taptempo.countdown import DEFAULT_RESET_SECONDS, ResetCountdown
from taptempo.errors import InvalidInputError
from taptempo.report import summarize
from taptempo.session import TapSession

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger("taptempo")

app = FastAPI(title="taptempo", version="0.1.0")


def now_ns() -> int:
    return time.monotonic_ns()


class TapService:
    """Owns the tap session and the countdown that ends it.

    Taps and countdown expiry both run on the event loop, so they never
    interleave; the session's own lock covers callers on other threads.
    """

    def __init__(self, reset_seconds: float = DEFAULT_RESET_SECONDS) -> None:
        self.session = TapSession()
        self.countdown = ResetCountdown(self.expire, seconds=reset_seconds)

    def tap(self, now: int) -> Dict[str, Any]:
        """Record a tap at `now` (monotonic ns), re-arm the countdown, return the summary."""
        starting = self.session.origin is None
        self.session.record(now)
        self.countdown.rearm()
        if starting:
            logger.info("New tap session started")
        return self.summary()

    def expire(self) -> None:
        logger.info("No tap for %.1f s, session reset after %d taps", self.countdown.seconds, len(self.session))
        self.session.clear_origin()

    def summary(self) -> Dict[str, Any]:
        just_reset, offsets = self.session.snapshot()
        return summarize(offsets, just_reset)


service = TapService()


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/tap")
async def tap() -> Dict[str, Any]:
    now = now_ns()
    try:
        return service.tap(now)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Tap failed")
        raise HTTPException(status_code=500, detail=f"Tap failed: {exc}") from exc


@app.get("/bpm")
async def bpm() -> Dict[str, Any]:
    return service.summary()


@app.get("/config")
async def get_config() -> Dict[str, float]:
    return {"reset_seconds": service.countdown.seconds}


@app.put("/config")
async def put_config(reset_seconds: float = Query(...)) -> Dict[str, float]:
    try:
        service.countdown.seconds = reset_seconds
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("Reset interval set to %.1f s", service.countdown.seconds)
    return {"reset_seconds": service.countdown.seconds}


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("taptempo.api:app", host="0.0.0.0", port=8000, reload=True)
