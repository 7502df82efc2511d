from typing import Optional

import httpx

from deckpad.application.generation import GenerationGateway
from deckpad.application.persistence import PersistenceService
from deckpad.application.workspace import DeckWorkspace
from deckpad.core.config import Settings
from deckpad.domain.entities import GenerationOptions
from deckpad.domain.identity import IdentityProvider
from deckpad.infrastructure.db.database import Database
from deckpad.infrastructure.http.generation_client import HttpGenerationClient
from deckpad.infrastructure.http.proxy_transport import ProxyApiTransport
from deckpad.infrastructure.transports.direct_store import DirectStoreTransport


def build_persistence_service(
    settings: Settings,
    identity: IdentityProvider,
    database: Optional[Database] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> PersistenceService:
    direct = None
    if settings.direct_store_enabled and database is not None:
        direct = DirectStoreTransport(database)

    proxy = None
    if settings.proxy_configured():
        proxy = ProxyApiTransport(
            settings.persistence_api_url,
            client=http_client,
            timeout=settings.http_timeout_seconds,
        )

    return PersistenceService(identity, direct=direct, proxy=proxy)


def build_workspace(
    settings: Settings,
    identity: IdentityProvider,
    database: Optional[Database] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> DeckWorkspace:
    """Wire a workspace from settings; ``http_client`` is shared by both HTTP adapters."""
    gateway = GenerationGateway(
        HttpGenerationClient(
            settings.generation_api_url,
            client=http_client,
            timeout=settings.http_timeout_seconds,
        )
    )
    persistence = build_persistence_service(settings, identity, database, http_client)
    default_options = GenerationOptions(
        slide_count=settings.default_slide_count,
        max_bullets_per_slide=settings.default_max_bullets_per_slide,
    )
    return DeckWorkspace(gateway, persistence, default_options=default_options)
