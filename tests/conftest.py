import fakeredis
import pytest
import pytest_asyncio

from redis_connection import ExportOptions


@pytest_asyncio.fixture
async def client():
    """Empty in-memory store, private to the test."""
    client = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def output_path(tmp_path):
    return tmp_path / "dump.json"


@pytest.fixture
def options(output_path):
    return ExportOptions(host="localhost", file_path=str(output_path))
