"""Manifest, page and evaluator builders shared by the tests."""

from src.ab.page import Page

ORIGIN = "https://main--site.example.com"


def make_manifest(
    status: str = "Active",
    audience: str = "",
    blocks: str = "hero",
    splits: tuple[str, str] = ("", "0.5"),
    pages: tuple[str, str] = (f"{ORIGIN}/pricing", f"{ORIGIN}/pricing-b"),
    variant_blocks: tuple[str, str] = ("", "/blocks/hero-b"),
) -> dict:
    """Return a control/challenger manifest in the exported sheet format."""
    return {
        "settings": {
            "data": [
                {"Name": "Experiment Name", "Value": "Pricing Hero"},
                {"Name": "Audience", "Value": audience},
                {"Name": "Status", "Value": status},
                {"Name": "Blocks", "Value": blocks},
            ],
        },
        "experiences": {
            "data": [
                {"Name": "Label", "Control": "Control", "Challenger 1": "New hero"},
                {"Name": "Percentage Split", "Control": splits[0], "Challenger 1": splits[1]},
                {"Name": "Pages", "Control": pages[0], "Challenger 1": pages[1]},
                {"Name": "Blocks", "Control": variant_blocks[0], "Challenger 1": variant_blocks[1]},
            ],
        },
    }


def make_page(path: str = "/pricing", query: str = "", **kwargs) -> Page:
    url = f"{ORIGIN}{path}" + (f"?{query}" if query else "")
    metadata = kwargs.pop("metadata", {"experiment": "hero"})
    return Page(url=url, metadata=metadata, main_html="<div>original</div>", **kwargs)


class FixedEvaluator:
    """Evaluator always answering with the same treatment, counting calls."""

    def __init__(self, variant: str | None) -> None:
        self.variant = variant
        self.calls = []

    def evaluate(self, policy, context):
        self.calls.append((policy, context))
        if self.variant is None:
            return {"items": []}
        return {"items": [{"id": self.variant}]}
