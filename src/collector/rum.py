"""Sampled real-user-monitoring (RUM) collector.

A page view is sampled when random * weight < 1, i.e. 1 in `weight` page
views report telemetry. Events recorded by an unsampled page view are
stashed rather than dropped: a checkpoint "case" may raise the sampling rate
later in the page view (experiments do, so that experiment traffic is
measured at 1 in 10 instead of 1 in 100), and the stash is then sent.
"""

import logging
import random
from typing import Any, Callable

from src.collector.schemas import Event

logger = logging.getLogger(__name__)

DEFAULT_WEIGHT = 100

SamplingCase = Callable[["RumCollector"], None]


class RumCollector:
    def __init__(self, weight: int = DEFAULT_WEIGHT, rng: random.Random | None = None) -> None:
        self.weight = weight
        self.random = (rng or random.Random()).random()
        self.cases: dict[str, SamplingCase] = {}
        self.sent: list[Event] = []
        self.stash: list[Event] = []

    @property
    def is_selected(self) -> bool:
        return self.random * self.weight < 1

    def record(self, checkpoint: str, data: dict[str, Any] | None = None) -> None:
        data = data or {}
        case = self.cases.get(checkpoint)
        if case is not None:
            case(self)

        event = Event(
            checkpoint=checkpoint,
            source=data.get("source"),
            target=data.get("target"),
            weight=self.weight,
        )
        if self.is_selected:
            self.sent.append(event)
        else:
            self.stash.append(event)
        logger.debug(
            "RUM %s source=%s target=%s sampled=%s",
            checkpoint, event.source, event.target, self.is_selected,
        )

    def drain_stash(self) -> None:
        if not self.is_selected:
            return
        for event in self.stash:
            self.sent.append(event.model_copy(update={"weight": self.weight}))
        self.stash.clear()


def adjusted_sampling_rate(rate: int) -> SamplingCase:
    """Sampling case tracking a checkpoint with a higher rate (1 in `rate`)."""
    def case(collector: RumCollector) -> None:
        collector.weight = min(collector.weight, rate)
        collector.drain_stash()

    return case
