"""CLI entrypoint: simulate visitors against an experiment manifest.

Usage:
    python -m src.simulator.generate --manifest manifest.json --experiment hero
    python -m src.simulator.generate --manifest manifest.json --experiment hero \
        --page /pricing --visitors 5000 --mobile-share 0.7
"""

import argparse
import json
import logging
from collections import Counter
from pathlib import Path

from src.ab.experiment import infer_empty_percentage_splits
from src.ab.manifest import parse_experiment_config
from src.simulator.config import SimulationConfig
from src.simulator.engine import simulate_visits


def main(args: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Simulate visitors against an experiment manifest")
    parser.add_argument("--manifest", type=str, required=True, help="Path to manifest JSON")
    parser.add_argument("--experiment", type=str, required=True, help="Experiment id")
    parser.add_argument("--page", type=str, default="/", help="Page path every visitor loads")
    parser.add_argument("--visitors", type=int, default=2000, help="Number of visitors")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--mobile-share", type=float, default=0.5, help="Share of mobile visitors")
    parser.add_argument("--verbose", action="store_true", help="Log resolution details")
    opts = parser.parse_args(args)

    logging.basicConfig(level=logging.DEBUG if opts.verbose else logging.WARNING)

    manifest = json.loads(Path(opts.manifest).read_text())
    experiment = parse_experiment_config(manifest)
    infer_empty_percentage_splits(experiment.variants.values())
    print(f"Experiment: {experiment.label or opts.experiment} ({opts.experiment})")
    for name, variant in experiment.ordered_variants():
        print(f"  {name}: {variant.weight:.0%} traffic")

    config = SimulationConfig(
        num_visitors=opts.visitors,
        seed=opts.seed,
        page_path=opts.page,
        mobile_share=opts.mobile_share,
    )
    print(f"Simulating {config.num_visitors} visitors on {config.page_path} (seed={config.seed})...")
    visits = simulate_visits(opts.experiment, manifest, config)

    bots = sum(1 for v in visits if v.is_bot)
    selected = Counter(v.selected_variant for v in visits if v.selected_variant)
    served = Counter(
        e.target for v in visits for e in v.events if e.checkpoint == "experiment"
    )
    print(f"Bots skipped: {bots}")
    print("Selected variants:")
    for name, count in sorted(selected.items()):
        print(f"  {name}: {count}")
    print("Served variants:")
    for name, count in sorted(served.items()):
        print(f"  {name}: {count}")
    print("Done.")


if __name__ == "__main__":
    main()
