import pytest

from fakes import FakeSearch


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_search():
    return FakeSearch()
