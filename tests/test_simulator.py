"""Tests for the visit simulator."""

import json
from collections import Counter

from src.simulator.config import SimulationConfig
from src.simulator.engine import build_site, simulate_visits
from src.simulator.generate import main
from tests.factories import make_manifest

# Small config for fast tests
SMALL_CONFIG = SimulationConfig(num_visitors=400, seed=42, page_path="/pricing")
MANIFEST = make_manifest(splits=("0.5", "0.5"))


class TestBuildSite:
    def test_contains_manifest_and_pages(self):
        site = build_site("hero", MANIFEST)
        assert site["/experiments/hero/manifest.json"] is MANIFEST
        assert "/pricing.plain.html" in site
        assert "/pricing-b.plain.html" in site


class TestSimulateVisits:
    def test_one_visit_per_visitor(self):
        visits = simulate_visits("hero", MANIFEST, SMALL_CONFIG)
        assert len(visits) == 400
        assert len({v.device_id for v in visits}) == 400

    def test_deterministic_with_same_seed(self):
        visits_a = simulate_visits("hero", MANIFEST, SMALL_CONFIG)
        visits_b = simulate_visits("hero", MANIFEST, SMALL_CONFIG)
        assert [v.selected_variant for v in visits_a] == [v.selected_variant for v in visits_b]

    def test_bots_are_never_bucketed(self):
        config = SimulationConfig(num_visitors=200, seed=1, page_path="/pricing", bot_share=0.5)
        visits = simulate_visits("hero", MANIFEST, config)
        bots = [v for v in visits if v.is_bot]
        assert bots
        assert all(v.selected_variant is None and not v.events for v in bots)

    def test_roughly_even_split(self):
        visits = simulate_visits("hero", MANIFEST, SMALL_CONFIG)
        selected = Counter(v.selected_variant for v in visits if not v.is_bot)
        humans = sum(selected.values())
        assert 0.4 * humans <= selected["control"] <= 0.6 * humans

    def test_challengers_are_served_and_tagged(self):
        visits = simulate_visits("hero", MANIFEST, SMALL_CONFIG)
        challengers = [v for v in visits if v.selected_variant == "challenger-1"]
        assert challengers
        for visit in challengers:
            assert visit.served
            assert "variant-challenger-1" in visit.body_classes
            assert [e.target for e in visit.events] == ["challenger-1"]

    def test_control_visitors_have_no_events(self):
        visits = simulate_visits("hero", MANIFEST, SMALL_CONFIG)
        assert all(not v.events for v in visits if v.selected_variant == "control")

    def test_audience_limits_visitors(self):
        manifest = make_manifest(audience="mobile", splits=("0.5", "0.5"))
        visits = simulate_visits("hero", manifest, SMALL_CONFIG)
        for visit in visits:
            if visit.selected_variant is not None:
                assert visit.viewport_width < 600

    def test_page_outside_experiment_serves_nothing(self):
        config = SimulationConfig(num_visitors=50, page_path="/about")
        visits = simulate_visits("hero", MANIFEST, config)
        assert not any(v.served for v in visits)


class TestGenerateCli:
    def test_prints_breakdown(self, tmp_path, capsys):
        path = tmp_path / "manifest.json"
        path.write_text(json.dumps(MANIFEST))
        main([
            "--manifest", str(path), "--experiment", "hero",
            "--page", "/pricing", "--visitors", "100",
        ])
        out = capsys.readouterr().out
        assert "control: 50% traffic" in out
        assert "Selected variants:" in out
        assert "Done." in out
