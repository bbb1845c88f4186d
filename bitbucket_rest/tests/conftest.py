import json
from collections.abc import Callable
from typing import Any

import pytest

from bitbucket_rest.adapters.bitbucket_client import BitbucketClient
from bitbucket_rest.tests.helpers import BASE_URL, read_fixture


@pytest.fixture
def load_fixture() -> Callable[[str], Any]:
    """Load a named JSON fixture from tests/fixtures as parsed JSON."""

    def _load(name: str) -> Any:
        return json.loads(read_fixture(name))

    return _load


@pytest.fixture
async def client():
    async with BitbucketClient(base_url=BASE_URL, username="admin", password="secret") as bb:
        yield bb
