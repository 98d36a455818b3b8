"""Experiment manifests: a two-sheet document turned into an ExperimentConfig.

The manifest is exported from a spreadsheet with two sheets:

  settings     rows of {"Name": ..., "Value": ...} applying to the whole
               experiment ("Audience", "Status", "Blocks", ...)
  experiences  one row per variant property; the first column holds the row
               label ("Percentage Split", "Label", "Pages", "Blocks") and
               every other column is a variant ("Control", "Challenger 1")

A blank row label continues the previous one, so several pages or blocks of
a variant can be listed on consecutive rows:

  Name   | Control            | Challenger 1
  Pages  | https://x/a        | https://x/a-new
         | https://x/b        | https://x/b-new

Pages pair up by position, so every page cell must hold a URL.
"""

import logging
from typing import Any, Iterator
from urllib.parse import urlsplit

from src.ab.casing import to_camel_case
from src.ab.config import PluginOptions
from src.ab.errors import (
    ConfigInvalid,
    ManifestMalformed,
    ManifestUnavailable,
    ResourceUnavailable,
)
from src.ab.experiment import ExperimentConfig, Variant, infer_empty_percentage_splits

logger = logging.getLogger(__name__)

# Settings rows that map onto ExperimentConfig attributes
CONFIG_FIELDS = ("label", "audience", "status")


def parse_experiment_config(document: dict[str, Any]) -> ExperimentConfig:
    """Parse a manifest document into an ExperimentConfig.

    The returned config has no id or provenance yet, and its splits are not
    inferred; load_manifest_config takes care of both.

    Raises:
        ManifestMalformed: If a sheet, row or column is missing or unusable
    """
    try:
        settings_rows = document["settings"]["data"]
        experience_rows = document["experiences"]["data"]
    except (KeyError, TypeError) as e:
        raise ManifestMalformed(f"missing sheet data: {e!r}") from e

    config = ExperimentConfig()
    _apply_settings(config, settings_rows)

    experience_rows = _as_records(experience_rows)
    if not experience_rows:
        raise ManifestMalformed("experiences sheet has no rows")
    columns = list(experience_rows[0].keys())
    if len(columns) < 2:
        raise ManifestMalformed("experiences sheet has no variant columns")
    label_column, variant_columns = columns[0], columns[1:]

    variant_ids = {column: to_camel_case(column) for column in variant_columns}
    config.variant_names = list(variant_ids.values())
    config.variants = {name: Variant() for name in config.variant_names}

    for key, row in _labeled_rows(experience_rows, label_column):
        for column, value in row.items():
            if column == label_column:
                continue
            name = variant_ids.get(column) or to_camel_case(column)
            if name not in config.variants:
                raise ManifestMalformed(f"row {key!r} has unknown variant column {column!r}")
            _apply_variant_value(config.variants[name], key, value)

    return config


def _apply_settings(config: ExperimentConfig, rows: list[dict[str, Any]]) -> None:
    for row in rows:
        try:
            key = to_camel_case(row["Name"])
            value = row["Value"]
        except (KeyError, TypeError) as e:
            raise ManifestMalformed(f"settings row without Name/Value: {row!r}") from e

        if key in CONFIG_FIELDS:
            setattr(config, key, "" if value is None else str(value))
        elif key == "blocks":
            config.blocks = _split_names(value)
        elif key:
            config.settings[key] = value


def _split_names(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    if not value:
        return []
    return [name.strip() for name in str(value).split(",") if name.strip()]


def _as_records(rows: list[Any]) -> list[dict[str, Any]]:
    """Accept either row mappings or a header row followed by value rows."""
    if not rows or not isinstance(rows[0], (list, tuple)):
        return rows
    header = [str(h) for h in rows[0]]
    records = []
    for values in rows[1:]:
        if not isinstance(values, (list, tuple)) or len(values) != len(header):
            raise ManifestMalformed(f"row does not match header {header!r}: {values!r}")
        records.append(dict(zip(header, values)))
    return records


def _labeled_rows(
    rows: list[dict[str, Any]], label_column: str
) -> Iterator[tuple[str, dict[str, Any]]]:
    """Yield (field key, row), carrying the last label over blank ones."""
    last_key = "default"
    for row in rows:
        if not isinstance(row, dict):
            raise ManifestMalformed(f"experiences row is not a mapping: {row!r}")
        key = to_camel_case(row.get(label_column)) or last_key
        last_key = key
        yield key, row


def _apply_variant_value(variant: Variant, key: str, value: Any) -> None:
    if key == "pages":
        # Pages pair up with the control's by position; a blank cell is an error
        if not isinstance(value, str) or not value.strip():
            raise ManifestMalformed(f"page must be a URL, got {value!r}")
        variant.pages.append(urlsplit(value.strip()).path or "/")
    elif key == "blocks":
        variant.blocks.append("" if value is None else str(value).strip())
    elif key == "percentageSplit":
        variant.percentage_split = "" if value is None else str(value).strip()
    elif key == "label":
        variant.label = "" if value is None else str(value)
    else:
        variant.extras[key] = value


async def load_manifest_config(
    experiment_id: str, options: PluginOptions, fetcher
) -> ExperimentConfig:
    """Fetch, parse and normalize the manifest of a full experiment.

    Raises:
        ManifestUnavailable: If the manifest cannot be fetched
        ManifestMalformed: If the document cannot be parsed
        ConfigInvalid: If a split is not a number
    """
    path = options.manifest_path(experiment_id)
    try:
        document = await fetcher.fetch_json(path)
    except ResourceUnavailable as e:
        raise ManifestUnavailable(path, e.status, e.reason) from e
    except ValueError as e:
        raise ManifestMalformed(f"not valid JSON: {e}", manifest=path) from e

    parser = options.parser or parse_experiment_config
    try:
        config = parser(document)
    except ManifestMalformed as e:
        raise ManifestMalformed(e.reason, manifest=path) from e
    if config is None:
        raise ManifestMalformed("parser returned no configuration", manifest=path)

    config.id = experiment_id
    config.manifest = path
    config.base_path = options.base_path(experiment_id)
    try:
        infer_empty_percentage_splits(config.variants.values())
    except ValueError as e:
        raise ConfigInvalid(experiment_id, str(e)) from e

    logger.debug(
        "Loaded experiment '%s' from %s with variants %s",
        experiment_id, path, config.variant_names,
    )
    return config
