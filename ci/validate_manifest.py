"""CI validation: verify an experiment manifest before it is published.

Experiments with a broken manifest silently stop running on the site, so
this script is run against every manifest in CI. It parses the manifest the
same way the site does and asserts structural and allocation invariants. If
anything is wrong, it exits non-zero and fails the build.

Usage:
    python ci/validate_manifest.py experiments/hero/manifest.json
    python ci/validate_manifest.py experiments/*/manifest.json
"""

import argparse
import json
import sys
from pathlib import Path

from src.ab.audience import default_audiences
from src.ab.errors import ManifestMalformed
from src.ab.experiment import config_problems, infer_empty_percentage_splits
from src.ab.manifest import parse_experiment_config

KNOWN_STATUSES = ("active", "inactive")
SPLIT_TOLERANCE = 0.01


def validate(manifest: dict) -> list[str]:
    """Return a list of validation errors (empty = pass)."""
    try:
        config = parse_experiment_config(manifest)
    except ManifestMalformed as e:
        return [e.message]  # Can't continue without structure

    # Splits are inferred before anything is checked, as on the site
    errors = []
    try:
        infer_empty_percentage_splits(config.variants.values())
    except ValueError as e:
        errors.append(str(e))
        splits_known = False
    else:
        splits_known = True
    errors.extend(config_problems(config))

    # --- Settings ---
    if config.status.strip().lower() not in KNOWN_STATUSES:
        errors.append(f"Unknown status: {config.status!r}")
    if config.audience and config.audience not in default_audiences():
        errors.append(f"Unknown audience: {config.audience!r}")

    # --- Splits ---
    if splits_known:
        total = sum(v.weight for v in config.variants.values())
        if abs(total - 1.0) > SPLIT_TOLERANCE:
            errors.append(f"Percentage splits sum to {total:.2f}, expected 1.00")

    # --- Pages and blocks ---
    if config.variant_names and config.variant_names[0] in config.variants:
        control = config.control
        if len(set(control.pages)) != len(control.pages):
            errors.append("Control lists the same page more than once")
        for name, variant in config.ordered_variants()[1:]:
            if len(variant.pages) > len(control.pages):
                errors.append(
                    f"Variant {name} has {len(variant.pages)} pages "
                    f"but control only has {len(control.pages)}"
                )
            if variant.blocks and not config.blocks:
                errors.append(f"Variant {name} overrides blocks but no Blocks setting is present")

    return errors


def main(args: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Validate experiment manifests")
    parser.add_argument("manifests", nargs="+", help="Path(s) to manifest JSON")
    opts = parser.parse_args(args)

    failed = False
    for manifest in opts.manifests:
        path = Path(manifest)
        if not path.exists():
            print(f"FAIL: {manifest} not found.")
            failed = True
            continue

        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            print(f"FAIL: {manifest} is not valid JSON: {e}")
            failed = True
            continue

        errors = validate(data)
        if errors:
            print(f"FAIL: {manifest}: {len(errors)} validation error(s):")
            for e in errors:
                print(f"  - {e}")
            failed = True
        else:
            print(f"PASS: {manifest}")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
