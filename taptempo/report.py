"""JSON-friendly snapshot of the current tempo estimates."""

from __future__ import annotations

import logging
import math
from typing import Dict, Optional, Sequence

from taptempo.bpm import ESTIMATORS
from taptempo.errors import InsufficientDataError

logger = logging.getLogger("taptempo")


def _finite_or_none(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


def summarize(offsets: Sequence[int], just_reset: bool = False) -> Dict[str, object]:
    """Run every estimator over the offsets.

    Input:
    - offsets: tap offsets in milliseconds.
    - just_reset: whether the session has timed out since the last tap.

    Output dict:
    - n: number of taps.
    - direct / lin_reg / thiel_sen: BPM float, or None when there are fewer
      than two taps or the estimate is not finite.
    - just_reset: passed through.
    """
    summary: Dict[str, object] = {"n": len(offsets)}
    for name, estimator in ESTIMATORS.items():
        try:
            summary[name] = _finite_or_none(estimator(offsets))
        except InsufficientDataError as exc:
            logger.debug("%s: %s", name, exc)
            summary[name] = None
    summary["just_reset"] = bool(just_reset)
    return summary
