"""Pytest fixtures shared across the test suite."""

import pytest

from tests.factories import make_manifest


@pytest.fixture
def manifest():
    return make_manifest()


@pytest.fixture
def site(manifest):
    """Resources of a site running the "hero" experiment on /pricing."""
    return {
        "/experiments/hero/manifest.json": manifest,
        "/pricing-b.plain.html": "<div>challenger</div>",
    }
