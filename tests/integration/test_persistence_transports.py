"""Persistence transports against a real (in-memory) database and the API app."""

import httpx
import pytest
import pytest_asyncio

from deckpad.application.persistence import PersistenceService
from deckpad.core import dependencies
from deckpad.domain.exceptions import PersistenceError, RelationMissingError
from deckpad.domain.identity import AuthSession
from deckpad.infrastructure.http.proxy_transport import ProxyApiTransport
from deckpad.infrastructure.identity import InMemoryIdentityProvider
from deckpad.infrastructure.transports.direct_store import DirectStoreTransport
from deckpad.main import create_app


@pytest_asyncio.fixture
async def api_proxy(database):
    """Proxy transport routed in-process to the presentations API."""
    dependencies.database = database
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=create_app()))
    yield ProxyApiTransport("http://api.test", client=client)
    await client.aclose()
    dependencies.database = None


class TestDirectStoreTransport:
    @pytest.mark.asyncio
    async def test_upsert_by_title(self, database, auth_session, sample_outline):
        transport = DirectStoreTransport(database)

        first = await transport.save(auth_session, "Photosynthesis", sample_outline)
        second = await transport.save(auth_session, "Photosynthesis", sample_outline)
        other = await transport.save(auth_session, "Respiration", sample_outline)

        assert first.version == 1
        assert second.id == first.id
        assert second.version == 2
        assert other.id != first.id
        assert other.version == 1
        assert len(await transport.load(auth_session)) == 2

    @pytest.mark.asyncio
    async def test_delete_only_own_records(
        self, database, auth_session, sample_outline
    ):
        transport = DirectStoreTransport(database)
        record = await transport.save(auth_session, "Deck", sample_outline)

        assert await transport.delete(AuthSession(user_id="intruder"), record.id) is False
        assert await transport.delete(auth_session, record.id) is True
        assert await transport.delete(auth_session, record.id) is False

    @pytest.mark.asyncio
    async def test_missing_table_is_classified(
        self, empty_database, auth_session, sample_outline
    ):
        transport = DirectStoreTransport(empty_database)

        with pytest.raises(RelationMissingError):
            await transport.save(auth_session, "Deck", sample_outline)


class TestFallbackToApi:
    @pytest.mark.asyncio
    async def test_save_and_load_through_proxy(
        self, identity, empty_database, api_proxy, sample_outline
    ):
        service = PersistenceService(
            identity, direct=DirectStoreTransport(empty_database), proxy=api_proxy
        )

        first = await service.save("Photosynthesis", sample_outline)
        second = await service.save("Photosynthesis", sample_outline)
        records = await service.load()

        assert (first.version, second.version) == (1, 2)
        assert second.id == first.id
        assert second.outline_snapshot == first.outline_snapshot
        assert [r.id for r in records] == [first.id]

    @pytest.mark.asyncio
    async def test_proxy_rejects_bad_token(
        self, empty_database, api_proxy, sample_outline
    ):
        identity = InMemoryIdentityProvider(AuthSession(user_id="u1", token="garbage"))
        service = PersistenceService(
            identity, direct=DirectStoreTransport(empty_database), proxy=api_proxy
        )

        with pytest.raises(PersistenceError, match="Save failed: 401"):
            await service.save("Deck", sample_outline)
