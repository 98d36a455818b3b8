"""Page-level experiment and campaign resolution.

One ExperienceDecisioning runs once per page view:

  bot?                         -> nothing runs
  no "experiment" metadata     -> nothing runs
  load config (manifest or instant), validate
  inactive / outside audience  -> nothing runs, unless forced by URL
  forced variant?              -> that variant
  otherwise                    -> decision policy evaluator
  control selected             -> nothing to change
  otherwise                    -> serve the variant page, tag, record

The returned ExperimentContext is what block rendering later needs to patch
block code paths (see src.ab.blocks.patch_block_config). Campaigns are
resolved afterwards and independently of experiments.

Example:
    >>> decisioning = ExperienceDecisioning(StaticFetcher(resources))
    >>> context = await decisioning.load_eager(page)
    >>> block = patch_block_config(BlockConfig.default("hero"), context)
"""

import logging
from urllib.parse import urlsplit

from src.ab.applier import apply_variant, replace_inner
from src.ab.assignment import DecisionEvaluator, HashingEvaluator, decide
from src.ab.audience import AudienceRegistry, default_audiences, is_bot, parse_override, should_run
from src.ab.blocks import ExperimentContext
from src.ab.casing import to_camel_case, to_class_name
from src.ab.config import DEFAULT_OPTIONS, PluginOptions
from src.ab.errors import ConfigInvalid, ExperimentationError
from src.ab.experiment import ExperimentConfig, config_problems
from src.ab.instant import build_instant_experiment
from src.ab.manifest import load_manifest_config
from src.ab.page import Page
from src.collector.rum import RumCollector, adjusted_sampling_rate
from src.collector.schemas import EventType

logger = logging.getLogger(__name__)

INSTANT_EXPERIMENT_TAGS = ("instant-experiment", "experiment-variants")


class ExperienceDecisioning:
    """Resolves experiments and campaigns for a page view.

    Attributes:
        fetcher: Serves manifests (fetch_json) and plain HTML (fetch_text)
        evaluator: Decision policy evaluator picking a variant
        sink: Telemetry sink receiving record(checkpoint, data)
        options: Plugin options
        audiences: Audience tag registry
        code_base_path: Prefix of block code paths on the current origin
    """

    def __init__(
        self,
        fetcher,
        evaluator: DecisionEvaluator | None = None,
        sink=None,
        options: PluginOptions = DEFAULT_OPTIONS,
        audiences: AudienceRegistry | None = None,
        code_base_path: str = "",
    ) -> None:
        self.fetcher = fetcher
        self.evaluator = evaluator or HashingEvaluator()
        self.sink = sink if sink is not None else RumCollector()
        self.options = options
        self.audiences = audiences or default_audiences()
        self.code_base_path = code_base_path

    async def get_config(
        self, experiment_id: str, instant_experiment: str | None, page: Page
    ) -> ExperimentConfig | None:
        """Load the experiment and pick a variant, or return None if it does not run.

        Raises:
            ExperimentationError: If the config cannot be loaded, is invalid,
                or no decision can be made
            ValueError: If an instant experiment lists a malformed URL
        """
        override = parse_override(page.query_param(self.options.experiments_query_parameter))
        forced = override is not None and override.experiment == experiment_id

        if instant_experiment:
            config = build_instant_experiment(experiment_id, instant_experiment, page.path)
        else:
            config = await load_manifest_config(experiment_id, self.options, self.fetcher)

        problems = config_problems(config, require_blocks=not instant_experiment)
        if problems:
            raise ConfigInvalid(experiment_id, "; ".join(problems))

        if not should_run(config, page, self.audiences, forced=forced):
            return None
        config.run = True

        if forced and override.variant in config.variant_names:
            config.selected_variant = override.variant
        else:
            config.selected_variant = await decide(
                config, self.evaluator, {"device_id": page.device_id}
            )
        return config

    async def run_experiment(self, page: Page) -> ExperimentContext:
        idle = ExperimentContext(origin=page.origin, code_base_path=self.code_base_path)
        if is_bot(page.user_agent):
            return idle

        experiment_id = page.get_metadata(self.options.experiments_meta_tag)
        if not experiment_id:
            return idle
        instant_experiment = next(
            (v for v in map(page.get_metadata, INSTANT_EXPERIMENT_TAGS) if v), None
        )

        try:
            config = await self.get_config(experiment_id, instant_experiment, page)
        except (ExperimentationError, ValueError) as e:
            logger.warning(
                "Invalid experiment config for '%s'. Please review your metadata, "
                "sheet and parser: %s", experiment_id, e,
            )
            return idle
        if config is None:
            return idle

        logger.debug("Running experiment (%s) -> %s", config.id, config.selected_variant)
        served = await apply_variant(config, page, self.fetcher, self.sink)
        return ExperimentContext(
            experiment=config,
            origin=page.origin,
            code_base_path=self.code_base_path,
            served=served,
        )

    async def run_campaign(self, page: Page) -> bool | None:
        """Serve an allow-listed campaign page. None when no campaign applies."""
        if is_bot(page.user_agent):
            return None

        raw = page.query_param(self.options.campaigns_query_parameter)
        campaign = to_class_name(raw)
        if not campaign:
            return None

        allowed = page.get_all_metadata(self.options.campaigns_meta_tag_prefix)
        url = allowed.get(to_camel_case(campaign))
        if not url:
            logger.debug("Campaign '%s' is not allowed on %s", campaign, page.path)
            return None

        parts = urlsplit(url.strip())
        if not parts.scheme or not parts.netloc:
            logger.error("Campaign '%s' has an invalid URL: %r", campaign, url)
            return None

        served = await replace_inner(parts.path, page, self.fetcher)
        if served:
            self.sink.record(EventType.CAMPAIGN.value, {"source": campaign, "target": parts.path})
        return served

    async def load_eager(self, page: Page) -> ExperimentContext:
        if isinstance(self.sink, RumCollector):
            self.sink.cases[EventType.EXPERIMENT.value] = adjusted_sampling_rate(
                self.options.rum_sampling_rate
            )
        context = await self.run_experiment(page)
        await self.run_campaign(page)
        return context
