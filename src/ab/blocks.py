"""Per-block code overrides for a running experiment.

When a variant lists block overrides, each rendered block is checked against
the experiment once the page-level decision is made. The control variant's
"Blocks" row says which block an override applies to:

  ""                 the first (or only) experimented block
  "hero"             the block named hero
  "/blocks/hero"     same, written as its code path

and the selected variant's entry at the same index says where its code lives:

  "https://feature--site.example.com"          same block, another deployment
  "https://feature--site.example.com/x/hero"   another deployment and path
  "https://<current origin>/x/hero"            another path on this origin
  "/x/hero"                                    another path on this origin
"""

import logging
import re
from dataclasses import dataclass, replace
from urllib.parse import urlsplit

from src.ab.experiment import ExperimentConfig

logger = logging.getLogger(__name__)

ABSOLUTE_URL = re.compile(r"^https?://")


@dataclass(frozen=True)
class BlockConfig:
    block_name: str
    css_path: str
    js_path: str

    @classmethod
    def default(cls, block_name: str, code_base_path: str = "") -> "BlockConfig":
        base = f"{code_base_path}/blocks/{block_name}/{block_name}"
        return cls(block_name=block_name, css_path=f"{base}.css", js_path=f"{base}.js")


@dataclass(frozen=True)
class ExperimentContext:
    """What the page-level resolution hands to block rendering.

    experiment is None when no experiment runs for this page view.
    """

    experiment: ExperimentConfig | None = None
    origin: str = ""
    code_base_path: str = ""
    served: bool = False


def _override_index(control_blocks: list[str], block_name: str) -> int:
    for candidate in ("", block_name, f"/blocks/{block_name}"):
        if candidate in control_blocks:
            return control_blocks.index(candidate)
    return -1


def patch_block_config(block: BlockConfig, context: ExperimentContext) -> BlockConfig:
    """Point a block's CSS and JS at the selected variant's code, if it has any."""
    experiment = context.experiment
    if experiment is None or not experiment.run:
        return block

    if (
        experiment.selected_variant == experiment.control_name
        or block.block_name not in experiment.blocks
    ):
        return block

    variant = experiment.variants.get(experiment.selected_variant)
    if variant is None or not variant.blocks:
        return block

    index = _override_index(experiment.control.blocks, block.block_name)
    if index < 0 or index >= len(variant.blocks):
        logger.debug("No override for block '%s' in experiment '%s'", block.block_name, experiment.id)
        return block

    entry = variant.blocks[index]
    origin = ""
    path = None
    if ABSOLUTE_URL.match(entry):
        url = urlsplit(entry)
        url_origin = f"{url.scheme}://{url.netloc}"
        if url_origin != context.origin:
            origin = url_origin
        if url.path and url.path != "/":
            path = url.path
        else:
            path = f"/blocks/{block.block_name}"
    else:
        path = entry

    if not origin and not path:
        return block

    base = f"{origin}{context.code_base_path}{path}/{block.block_name}"
    logger.debug("Block '%s' served from %s", block.block_name, base)
    return replace(block, css_path=f"{base}.css", js_path=f"{base}.js")
