"""
Loss Series - Merged packet-loss percentage across active targets
=================================================================

Combines the probe counters of every active target into one loss
percentage per distinct timestamp. Counters are summed before dividing,
so a target probing more often weighs proportionally more.

    loss_pct(ts) = 100 * sum(lost) / sum(sent)     if sum(sent) > 0
                 = None                            otherwise

A bucket with no send attempts carries no loss signal and is reported as
None rather than 0%.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Target

logger = logging.getLogger("Analytics.LossSeries")


@dataclass(frozen=True)
class LossPoint:
    """Merged loss percentage at one timestamp."""
    timestamp: int
    loss_pct: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "ts": self.timestamp,
            "loss": round(self.loss_pct, 4) if self.loss_pct is not None else None,
        }


def build_loss_series(targets: Iterable[Target]) -> List[LossPoint]:
    """
    Build the merged loss series for the given targets.

    Callers pass only the active targets; every sample of every target
    passed in contributes.

    Args:
        targets: Targets to merge

    Returns:
        LossPoint list, ascending by timestamp, one per distinct timestamp
    """
    counters: Dict[int, Tuple[int, int]] = {}

    for target in targets:
        for sample in target.points:
            sent, lost = counters.get(sample.timestamp, (0, 0))
            counters[sample.timestamp] = (sent + sample.sent, lost + sample.lost)

    series = []
    for ts in sorted(counters):
        sent, lost = counters[ts]
        loss_pct = (lost / sent) * 100 if sent > 0 else None
        series.append(LossPoint(timestamp=ts, loss_pct=loss_pct))

    logger.debug(f"Built loss series with {len(series)} points")
    return series
