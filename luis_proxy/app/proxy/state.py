"""
Application state shared by every request.
"""

from typing import Optional

import httpx

from ..config import Settings
from ..store import ConfigStore
from .forwarder import Forwarder


class AppState:
    """
    Application state container.

    Holds the resources shared by every request: settings, the runtime
    config store and the backend forwarder. The forwarder only exists while
    the lifespan is running; each startup opens a fresh httpx client over
    ``transport`` and each shutdown closes it.
    """

    def __init__(
        self,
        settings: Settings,
        config_store: ConfigStore,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.settings = settings
        self.config_store = config_store
        self.transport = transport
        self.forwarder: Optional[Forwarder] = None

    def open_forwarder(self) -> Forwarder:
        client = httpx.AsyncClient(
            transport=self.transport,
            timeout=httpx.Timeout(self.settings.BACKEND_TIMEOUT_SECONDS),
        )
        self.forwarder = Forwarder(client)
        return self.forwarder

    async def close_forwarder(self) -> None:
        if self.forwarder is not None:
            await self.forwarder.aclose()
            self.forwarder = None
