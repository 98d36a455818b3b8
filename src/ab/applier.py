"""Serving a selected variant on the current page.

A variant only replaces content on pages the experiment targets. The current
path is looked up in the control's pages, and the variant page at the same
index is served in its place:

  control.pages      = ["/pricing", "/plans"]
  challenger-1.pages = ["/pricing-b", "/plans-b"]
  /plans  ->  content of /plans-b

If the replacement cannot be fetched the original content stays, and the
page tags and telemetry report the control variant rather than the one that
was selected.
"""

import logging

from src.ab.errors import ContentUnavailable, ResourceUnavailable
from src.ab.experiment import ExperimentConfig
from src.ab.page import Page
from src.collector.schemas import EventType

logger = logging.getLogger(__name__)


async def _fetch_content(plain_path: str, fetcher) -> str:
    try:
        return await fetcher.fetch_text(plain_path)
    except ResourceUnavailable as e:
        raise ContentUnavailable(plain_path, e.status, e.reason) from e


async def replace_inner(path: str, page: Page, fetcher) -> bool:
    """Replace the page's main region with the plain HTML of `path`."""
    plain_path = f"{path}.plain.html"
    try:
        html = await _fetch_content(plain_path, fetcher)
    except ContentUnavailable as e:
        logger.warning("Error loading experiment content: %s", e.message)
        return False
    page.replace_main(html)
    return True


def target_page(config: ExperimentConfig, current_path: str) -> str | None:
    """Return the variant page to serve in place of `current_path`, if any."""
    try:
        index = config.control.pages.index(current_path)
    except ValueError:
        logger.debug("Page %s is not part of experiment '%s'", current_path, config.id)
        return None

    pages = config.variants[config.selected_variant].pages
    if index >= len(pages):
        logger.debug(
            "Variant '%s' has no page for %s", config.selected_variant, current_path
        )
        return None
    if pages[index] == current_path:
        return None
    return pages[index]


async def apply_variant(config: ExperimentConfig, page: Page, fetcher, sink) -> bool:
    """Serve the selected variant's content. Returns True when it was served."""
    if config.selected_variant == config.control_name:
        return False

    target = target_page(config, page.path)
    if target is None:
        return False

    page.add_body_class(f"experiment-{config.id}")
    served = await replace_inner(target, page, fetcher)
    effective = config.selected_variant if served else config.control_name
    if not served:
        logger.debug(
            "Failed to serve variant %s. Falling back to %s.",
            config.selected_variant, config.control_name,
        )
    page.add_body_class(f"variant-{effective}")
    sink.record(EventType.EXPERIMENT.value, {"source": config.id, "target": effective})
    return served
