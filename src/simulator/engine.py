"""Simulation engine running synthetic visitors through experiment resolution.

Each simulated visitor loads the same page:
  page view -> (bot?) -> experiment resolution -> variant served or not

Visitors get a stable device id, so the hashing evaluator buckets them the
same way on every run. Viewport and bot status are drawn from a seeded RNG.
Variant content is served from memory, so every non-control decision on a
targeted page is served.
"""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Any

from src.ab.assignment import HashingEvaluator
from src.ab.config import DEFAULT_OPTIONS, PluginOptions
from src.ab.decisioning import ExperienceDecisioning
from src.ab.fetch import StaticFetcher
from src.ab.manifest import parse_experiment_config
from src.ab.page import Page
from src.collector.rum import RumCollector
from src.collector.schemas import Event
from src.simulator.config import SimulationConfig


@dataclass
class Visit:
    device_id: str
    is_bot: bool
    viewport_width: int
    selected_variant: str | None = None
    served: bool = False
    body_classes: list[str] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)


def build_site(
    experiment_id: str,
    manifest: dict[str, Any],
    options: PluginOptions = DEFAULT_OPTIONS,
) -> dict[str, Any]:
    """Return the resources a site needs to serve the experiment: manifest and variant pages."""
    resources: dict[str, Any] = {options.manifest_path(experiment_id): manifest}
    parser = options.parser or parse_experiment_config
    for variant in parser(manifest).variants.values():
        for page in variant.pages:
            resources[f"{page}.plain.html"] = f"<div class=\"section\">{page}</div>"
    return resources


def simulate_visits(
    experiment_id: str,
    manifest: dict[str, Any],
    config: SimulationConfig | None = None,
    options: PluginOptions = DEFAULT_OPTIONS,
) -> list[Visit]:
    """Resolve the experiment for `config.num_visitors` synthetic page views."""
    if config is None:
        config = SimulationConfig()
    fetcher = StaticFetcher(build_site(experiment_id, manifest, options))
    return asyncio.run(_simulate(experiment_id, fetcher, config, options))


async def _simulate(
    experiment_id: str,
    fetcher: StaticFetcher,
    config: SimulationConfig,
    options: PluginOptions,
) -> list[Visit]:
    rng = random.Random(config.seed)
    evaluator = HashingEvaluator(seed=config.seed)
    visits = []
    for i in range(config.num_visitors):
        visit = _make_visit(f"device_{i:05d}", config, rng)
        page = Page(
            url=f"{config.origin}{config.page_path}",
            user_agent=config.bot_user_agent if visit.is_bot else config.user_agent,
            viewport_width=visit.viewport_width,
            device_id=visit.device_id,
            metadata={options.experiments_meta_tag: experiment_id},
        )
        # Sample every visitor so each served variant shows up as an event
        collector = RumCollector(weight=1, rng=rng)
        decisioning = ExperienceDecisioning(
            fetcher, evaluator=evaluator, sink=collector, options=options,
        )
        context = await decisioning.run_experiment(page)

        if context.experiment is not None:
            visit.selected_variant = context.experiment.selected_variant
        visit.served = context.served
        visit.body_classes = list(page.body_classes)
        visit.events = list(collector.sent)
        visits.append(visit)
    return visits


def _make_visit(device_id: str, config: SimulationConfig, rng: random.Random) -> Visit:
    is_bot = rng.random() < config.bot_share
    mobile = rng.random() < config.mobile_share
    return Visit(
        device_id=device_id,
        is_bot=is_bot,
        viewport_width=config.mobile_width if mobile else config.desktop_width,
    )
