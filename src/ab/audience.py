"""Who gets to take part in an experiment.

Three gates run before any variant is picked:

- bots (user agents matching bot/crawl/spider) never take part, so crawler
  and tooling traffic stays out of the sampling statistics;
- a URL override "?experiment=<id>/<variant>" forces the experiment on,
  ignoring its status and audience, and optionally pins the variant;
- otherwise the experiment must be active and the visitor must belong to its
  audience.

Audiences are looked up by class-name-normalized tag in an AudienceRegistry.
Integrators add their own tags with register().
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable

from src.ab.casing import to_class_name
from src.ab.experiment import ExperimentConfig
from src.ab.page import Page

logger = logging.getLogger(__name__)

BOT_PATTERN = re.compile(r"bot|crawl|spider", re.IGNORECASE)
MOBILE_BREAKPOINT = 600

AudiencePredicate = Callable[[Page], bool]


def is_bot(user_agent: str | None) -> bool:
    return bool(user_agent) and BOT_PATTERN.search(user_agent) is not None


class AudienceRegistry:
    """Maps an audience tag to a predicate deciding membership for a page view.

    Unknown and empty tags match everyone.
    """

    def __init__(self, predicates: dict[str, AudiencePredicate] | None = None) -> None:
        self._predicates: dict[str, AudiencePredicate] = {}
        for tag, predicate in (predicates or {}).items():
            self.register(tag, predicate)

    def register(self, tag: str, predicate: AudiencePredicate) -> None:
        self._predicates[to_class_name(tag)] = predicate

    def __contains__(self, tag: str) -> bool:
        return to_class_name(tag) in self._predicates

    def is_member(self, audience: str | None, page: Page) -> bool:
        predicate = self._predicates.get(to_class_name(audience))
        if predicate is None:
            return True
        return bool(predicate(page))


def default_audiences() -> AudienceRegistry:
    return AudienceRegistry({
        "mobile": lambda page: page.viewport_width < MOBILE_BREAKPOINT,
        "desktop": lambda page: page.viewport_width >= MOBILE_BREAKPOINT,
    })


@dataclass(frozen=True)
class Override:
    experiment: str
    variant: str | None = None


def parse_override(value: str | None) -> Override | None:
    """Parse "<experiment>/<variant>" (variant optional) from a query parameter."""
    if not value:
        return None
    experiment, _, variant = value.partition("/")
    if not experiment:
        return None
    return Override(experiment=experiment, variant=variant or None)


def should_run(
    config: ExperimentConfig,
    page: Page,
    audiences: AudienceRegistry,
    forced: bool = False,
) -> bool:
    """Decide whether the experiment is live for this visitor."""
    if forced:
        logger.debug("Experiment '%s' forced through URL override", config.id)
        return True
    if not config.is_active:
        logger.debug("Experiment '%s' is not active (status=%r)", config.id, config.status)
        return False
    if not audiences.is_member(config.audience, page):
        logger.debug(
            "Visitor not in audience %r for experiment '%s'", config.audience, config.id
        )
        return False
    return True
