"""Plugin options for experiment and campaign resolution.

Every option can be overridden per page load with dataclasses.replace:

    options = replace(DEFAULT_OPTIONS, experiments_root="/tests")
"""

from dataclasses import dataclass
from typing import Any, Callable


@dataclass(frozen=True)
class PluginOptions:
    # Manifest lookup: <experiments_root>/<id>/<experiments_config_file>
    experiments_root: str = "/experiments"
    experiments_config_file: str = "manifest.json"
    # Page metadata naming the active experiment
    experiments_meta_tag: str = "experiment"
    # URL override, "<experiment>/<variant>"
    experiments_query_parameter: str = "experiment"

    # Campaigns are allow-listed via "<prefix>-<name>" metadata tags
    campaigns_meta_tag_prefix: str = "campaign"
    campaigns_query_parameter: str = "campaign"

    # 1 in N visitors are sampled while an experiment is running
    rum_sampling_rate: int = 10

    # Replaces the built-in manifest parser when set
    parser: Callable[[dict[str, Any]], Any] | None = None

    def manifest_path(self, experiment_id: str) -> str:
        return f"{self.base_path(experiment_id)}/{self.experiments_config_file}"

    def base_path(self, experiment_id: str) -> str:
        return f"{self.experiments_root}/{experiment_id}"


DEFAULT_OPTIONS = PluginOptions()
