from __future__ import annotations

import pytest

from coogmusic.services.analytics.config import ReportConfig
from coogmusic.tests.fakes import InMemoryRepository
from coogmusic.tests.sample_data import build_catalog


@pytest.fixture
def catalog() -> InMemoryRepository:
    return build_catalog()


@pytest.fixture
def config() -> ReportConfig:
    return ReportConfig(max_workers=4, excluded_usernames=frozenset({"testuser"}))
