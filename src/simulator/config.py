"""Simulation parameters for synthetic page views.

The visitor mix is a rough picture of a marketing site's traffic: about half
on phones, and a small share of crawlers that must never be bucketed.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SimulationConfig:
    num_visitors: int = 2000
    # Random seed for reproducibility
    seed: int = 42

    origin: str = "https://main--site.example.com"
    page_path: str = "/"

    # Visitor mix
    mobile_share: float = 0.5      # 50% of visitors on a narrow viewport
    bot_share: float = 0.02        # 2% crawler traffic
    mobile_width: int = 390
    desktop_width: int = 1440

    user_agent: str = "Mozilla/5.0 (X11; Linux x86_64) Firefox/128.0"
    bot_user_agent: str = "Mozilla/5.0 (compatible; Googlebot/2.1)"
