"""Experiment configuration model.

An experiment has an ordered list of variant ids whose first entry is the
control, and one Variant per id carrying its pages, block overrides and
traffic split. Configurations come either from a manifest (see
src.ab.manifest) or from a list of challenger URLs (see src.ab.instant).

Splits are kept as decimal strings the way manifests carry them:
  "0.25" -> explicit 25% of traffic
  ""     -> infer from whatever the explicit splits leave over
"""

from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass
class Variant:
    label: str = ""
    percentage_split: str | None = None
    pages: list[str] = field(default_factory=list)
    blocks: list[str] = field(default_factory=list)
    # Any other experience rows (e.g. "url", "notes"), keyed by camel-cased label
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def has_split(self) -> bool:
        return bool(self.percentage_split)

    @property
    def weight(self) -> float:
        """Traffic proportion (0.0 to 1.0); unset splits weigh nothing."""
        return float(self.percentage_split) if self.percentage_split else 0.0


@dataclass
class ExperimentConfig:
    id: str = ""
    label: str = ""
    audience: str = ""
    status: str = ""
    blocks: list[str] = field(default_factory=list)
    variant_names: list[str] = field(default_factory=list)
    variants: dict[str, Variant] = field(default_factory=dict)
    manifest: str | None = None
    base_path: str | None = None
    # Remaining settings rows, keyed by camel-cased name
    settings: dict[str, Any] = field(default_factory=dict)

    # Computed once per page load
    run: bool = False
    selected_variant: str | None = None

    @property
    def control_name(self) -> str:
        return self.variant_names[0]

    @property
    def control(self) -> Variant:
        return self.variants[self.variant_names[0]]

    @property
    def is_active(self) -> bool:
        return isinstance(self.status, str) and self.status.strip().lower() == "active"

    def ordered_variants(self) -> list[tuple[str, Variant]]:
        return [(name, self.variants[name]) for name in self.variant_names]


def infer_empty_percentage_splits(variants: Iterable[Variant]) -> None:
    """Fill unset splits with an even share of what explicit splits leave over.

    Remaining = 1 - sum(explicit splits), divided across the variants without
    a split and formatted to two decimals. When every variant already has a
    split nothing is touched, even if the explicit values do not add up to 1.
    Running it twice is a no-op.
    """
    remaining = 1.0
    without_split = []
    for variant in variants:
        if not variant.has_split:
            without_split.append(variant)
            continue
        try:
            remaining -= float(variant.percentage_split)
        except ValueError:
            raise ValueError(
                f"Percentage split must be a number, got {variant.percentage_split!r}"
            ) from None

    if without_split:
        share = remaining / len(without_split)
        for variant in without_split:
            variant.percentage_split = f"{share:.2f}"


def config_problems(config: ExperimentConfig, require_blocks: bool = True) -> list[str]:
    """Return a list of reasons the configuration cannot run (empty = valid)."""
    if not config.variant_names:
        return ["no variants declared"]
    if not config.variants:
        return ["variants are missing"]

    problems = []
    for name in config.variant_names:
        if name not in config.variants:
            problems.append(f"variant {name} is declared but not defined")
    for name, variant in config.variants.items():
        if not variant.pages:
            problems.append(f"variant {name} has no pages")
        if require_blocks and not variant.blocks:
            problems.append(f"variant {name} has no blocks")
        if variant.percentage_split is None:
            problems.append(f"variant {name} has no percentage split")
            continue
        if variant.percentage_split == "":
            continue
        try:
            split = float(variant.percentage_split)
        except ValueError:
            problems.append(f"variant {name} has a non-numeric split: {variant.percentage_split!r}")
            continue
        if not 0.0 <= split <= 1.0:
            problems.append(f"variant {name} split out of range: {split}")
    return problems


def is_valid_config(config: ExperimentConfig, require_blocks: bool = True) -> bool:
    """A configuration is valid when every variant has pages, blocks and a split.

    Instant experiments only ever replace whole pages, so they are checked
    with require_blocks=False.
    """
    return not config_problems(config, require_blocks=require_blocks)
