"""
Client Registry - One HuaweiIAPClient per client id.

The registry is owned by the embedding application: create it at startup,
share it, and aclose() it at shutdown. Reusing a client keeps its cached
access token, so repeated lookups do not re-authenticate.
"""

import asyncio
from collections.abc import Mapping

import httpx
from structlog import get_logger

from huawei_iap.config import Settings
from huawei_iap.models.huawei import Credentials
from huawei_iap.services.huawei_iap_client import HuaweiIAPClient

logger = get_logger(__name__)


class ClientRegistry:
    """Maps client ids to client instances. Entries are never evicted."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self._http_client = http_client
        self._clients: dict[str, HuaweiIAPClient] = {}

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._clients

    def get_client(self, credentials: Credentials) -> HuaweiIAPClient:
        """
        Return the client registered for credentials.client_id, creating it if needed.

        A different client_secret for an already registered client_id is
        ignored: the existing instance is returned unchanged.
        """
        client = self._clients.get(credentials.client_id)
        if client is not None:
            logger.debug("huawei_iap_client_reused", client_id=credentials.client_id)
            return client

        client = HuaweiIAPClient(
            credentials,
            settings=self.settings,
            http_client=self._http_client,
        )
        self._clients[credentials.client_id] = client
        return client

    async def aclose(self) -> None:
        """
        Close every registered client and empty the registry.

        Every client is closed even if another one fails; the first failure
        is re-raised once the registry is empty.
        """
        clients = list(self._clients.values())
        try:
            results = await asyncio.gather(
                *(client.aclose() for client in clients),
                return_exceptions=True,
            )
        finally:
            self._clients.clear()

        errors = [result for result in results if isinstance(result, BaseException)]
        for error in errors:
            logger.error("huawei_iap_client_close_failed", error=str(error))
        if errors:
            raise errors[0]


_default_registry: ClientRegistry | None = None


def default_registry() -> ClientRegistry:
    """Get the lazily created registry used by create_client()."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ClientRegistry()
    return _default_registry


def create_client(
    credentials: Credentials | Mapping[str, str],
    registry: ClientRegistry | None = None,
) -> HuaweiIAPClient:
    """
    Get a client for the given credentials.

    Usage:
        client = create_client({"client_id": "101234567", "client_secret": "..."})
        result = await client.get_order(OrderVerificationRequest("prod_1", token))
    """
    if not isinstance(credentials, Credentials):
        credentials = Credentials(
            client_id=credentials["client_id"],
            client_secret=credentials["client_secret"],
        )
    if registry is None:
        registry = default_registry()
    return registry.get_client(credentials)
