"""Instant experiments: a configuration built from challenger URLs alone.

Authors can skip the manifest and list challenger pages in the page's
"instant-experiment" metadata:

  instant-experiment: https://site/pricing-b, https://site/pricing-c

The current page becomes the control, each URL a "challenger-N" variant, and
traffic is split evenly across all of them.
"""

from urllib.parse import urlsplit

from src.ab.experiment import ExperimentConfig, Variant, infer_empty_percentage_splits


def _url_path(url: str) -> str:
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Challenger must be an absolute URL, got {url!r}")
    return parts.path or "/"


def build_instant_experiment(
    experiment_id: str, challenger_urls: str, current_path: str
) -> ExperimentConfig:
    """Build an always-active config for a comma-separated list of URLs.

    Challengers get 1/(n+1) of traffic each; the control gets the remainder
    through split inference.

    Raises:
        ValueError: If any challenger is not an absolute URL
    """
    pages = [_url_path(url) for url in challenger_urls.split(",")]
    even_split = 1 / (len(pages) + 1)

    config = ExperimentConfig(
        id=experiment_id,
        label=f"Instant Experiment: {experiment_id}",
        audience="",
        status="Active",
    )
    config.variant_names.append("control")
    config.variants["control"] = Variant(
        label="Control",
        percentage_split="",
        pages=[current_path],
        blocks=[],
    )
    for i, page in enumerate(pages, start=1):
        name = f"challenger-{i}"
        config.variant_names.append(name)
        config.variants[name] = Variant(
            label=f"Challenger {i}",
            percentage_split=f"{even_split:.2f}",
            pages=[page],
            blocks=[],
        )

    infer_empty_percentage_splits(config.variants.values())
    return config
