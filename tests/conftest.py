"""Helpful fixtures for testing pgsnip."""

from pgsnip.catalog import Catalog, load_catalog
from pgsnip.runner import SnippetRunner

import pytest

from tests.mocks import MockConnectionPool


@pytest.fixture()
def catalog(monkeypatch) -> Catalog:
    """Provide the bundled catalog, regardless of $PGSNIP_DOCUMENT in the environment."""
    monkeypatch.delenv("PGSNIP_DOCUMENT", raising=False)
    return load_catalog()


@pytest.fixture()
def runner_and_pool(request):
    """Fixture that yields a SnippetRunner (and its MockConnectionPool) initialized with a set of mock cursors.

    .. note::
        Can use the `indirect` parametrize functionality in fixture to specify the mocked cursors.
    """
    cursor_stack = []
    if hasattr(request, "param"):
        cursor_stack = request.param
    pool = MockConnectionPool(cursor_stack)
    yield SnippetRunner(pool), pool
    pool.dispose()
