"""Tests for per-block code path rewriting."""

import pytest

from src.ab.blocks import BlockConfig, ExperimentContext, patch_block_config
from src.ab.experiment import ExperimentConfig, Variant

ORIGIN = "https://main--site.example.com"


def _context(
    control_blocks=("",),
    variant_blocks=("/blocks/hero-b",),
    blocks=("hero",),
    selected="challenger-1",
    run=True,
    code_base_path="",
) -> ExperimentContext:
    experiment = ExperimentConfig(
        id="hero",
        status="Active",
        blocks=list(blocks),
        variant_names=["control", "challenger-1"],
        variants={
            "control": Variant(pages=["/"], blocks=list(control_blocks)),
            "challenger-1": Variant(pages=["/"], blocks=list(variant_blocks)),
        },
        run=run,
        selected_variant=selected,
    )
    return ExperimentContext(experiment=experiment, origin=ORIGIN, code_base_path=code_base_path)


HERO = BlockConfig.default("hero")


class TestBlockConfig:
    def test_default_paths(self):
        assert HERO.css_path == "/blocks/hero/hero.css"
        assert HERO.js_path == "/blocks/hero/hero.js"

    def test_default_with_code_base(self):
        assert BlockConfig.default("cards", "/hlx").js_path == "/hlx/blocks/cards/cards.js"


class TestPatchBlockConfig:
    def test_bare_path_override(self):
        patched = patch_block_config(HERO, _context())
        assert patched.css_path == "/blocks/hero-b/hero.css"
        assert patched.js_path == "/blocks/hero-b/hero.js"
        assert patched.block_name == "hero"

    def test_code_base_prefixed(self):
        patched = patch_block_config(HERO, _context(code_base_path="/hlx"))
        assert patched.js_path == "/hlx/blocks/hero-b/hero.js"

    def test_other_origin_keeps_canonical_path(self):
        context = _context(variant_blocks=("https://feature--site.example.com",))
        patched = patch_block_config(HERO, context)
        assert patched.css_path == "https://feature--site.example.com/blocks/hero/hero.css"
        assert patched.js_path == "https://feature--site.example.com/blocks/hero/hero.js"

    def test_other_origin_with_path(self):
        context = _context(variant_blocks=("https://feature--site.example.com/lab/hero",))
        patched = patch_block_config(HERO, context)
        assert patched.js_path == "https://feature--site.example.com/lab/hero/hero.js"

    def test_same_origin_with_path(self):
        context = _context(variant_blocks=(f"{ORIGIN}/lab/hero",))
        patched = patch_block_config(HERO, context)
        assert patched.js_path == "/lab/hero/hero.js"

    def test_same_origin_root(self):
        context = _context(variant_blocks=(f"{ORIGIN}/",))
        patched = patch_block_config(HERO, context)
        assert patched.js_path == "/blocks/hero/hero.js"

    def test_match_by_bare_name(self):
        context = _context(
            control_blocks=("cards", "hero"),
            variant_blocks=("/blocks/cards-b", "/blocks/hero-b"),
            blocks=("cards", "hero"),
        )
        assert patch_block_config(HERO, context).js_path == "/blocks/hero-b/hero.js"

    def test_match_by_block_path(self):
        context = _context(
            control_blocks=("/blocks/cards", "/blocks/hero"),
            variant_blocks=("/blocks/cards-b", "/blocks/hero-b"),
            blocks=("cards", "hero"),
        )
        cards = BlockConfig.default("cards")
        assert patch_block_config(HERO, context).js_path == "/blocks/hero-b/hero.js"
        assert patch_block_config(cards, context).js_path == "/blocks/cards-b/cards.js"

    def test_sentinel_wins_over_name(self):
        context = _context(
            control_blocks=("hero", ""),
            variant_blocks=("/blocks/by-name", "/blocks/by-sentinel"),
        )
        assert patch_block_config(HERO, context).js_path == "/blocks/by-sentinel/hero.js"

    def test_unlisted_block_untouched(self):
        cards = BlockConfig.default("cards")
        assert patch_block_config(cards, _context()) == cards

    def test_no_matching_index_untouched(self):
        context = _context(control_blocks=("cards",), blocks=("hero", "cards"))
        assert patch_block_config(HERO, context) == HERO

    def test_empty_override_untouched(self):
        context = _context(variant_blocks=("",))
        assert patch_block_config(HERO, context) == HERO

    def test_variant_without_blocks_untouched(self):
        assert patch_block_config(HERO, _context(variant_blocks=())) == HERO

    def test_control_untouched(self):
        assert patch_block_config(HERO, _context(selected="control")) == HERO

    @pytest.mark.parametrize("context", [
        ExperimentContext(),
        _context(run=False),
    ])
    def test_no_running_experiment(self, context):
        assert patch_block_config(HERO, context) == HERO
