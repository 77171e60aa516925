"""Shared fixtures."""

import pytest

from tests.helpers import FIXTURES_DIR


@pytest.fixture
def sample_html() -> str:
    return (FIXTURES_DIR / "sample_jobs_page.html").read_text()


@pytest.fixture
def sample_extraction() -> str:
    return (FIXTURES_DIR / "sample_extraction_response.json").read_text()
