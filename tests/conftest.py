"""Shared fixtures: settings, taxonomy and an in-memory store."""

from __future__ import annotations

import pytest

from short_videos.config import Settings
from short_videos.models import Category, Taxonomy, TaxonomyTag
from tests.fakes import FakeStore


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="postgresql://test@localhost/test",
        openai_api_key="sk-test",
        imagekit_private_key="private_test",
        work_dir=tmp_path / "work",
    )


@pytest.fixture
def taxonomy():
    return Taxonomy(
        triggers=[
            TaxonomyTag(id="t-1", name="Scarcity", slug="scarcity"),
            TaxonomyTag(id="t-2", name="Social Proof", slug="social-proof"),
        ],
        power_words=[
            TaxonomyTag(id="p-1", name="Exclusive", slug="exclusive"),
            TaxonomyTag(id="p-2", name="Instantly", slug="instantly"),
        ],
        categories=[
            Category(id="c-1", name="Buyer Tips", slug="buyer-tips"),
            Category(id="c-2", name="Market Update", slug="market-update"),
        ],
    )


@pytest.fixture
def fake_store(taxonomy):
    return FakeStore(taxonomy=taxonomy)
