# This project was developed with assistance from AI tools.
"""Supabase Auth admin API client.

Used to mirror role changes into the identity provider's ``app_metadata``.
Calls are best-effort: the ``users`` table is the source of truth for
roles, so a failed mirror is logged and never fails the request.
"""

import logging

import httpx
from fastapi import Request

logger = logging.getLogger(__name__)


class IdentityAdminClient:
    """Minimal async client for ``/auth/v1/admin/users``."""

    def __init__(
        self,
        base_url: str,
        service_role_key: str | None,
        *,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._service_role_key = service_role_key
        self._timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self._service_role_key)

    async def update_app_metadata(self, auth_user_id: str, metadata: dict) -> bool:
        """Merge ``metadata`` into the user's app_metadata. Returns success."""
        if not self.enabled:
            logger.debug("Identity admin API not configured; skipping metadata sync")
            return False

        headers = {
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {self._service_role_key}",
        }
        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport,
        ) as client:
            try:
                response = await client.put(
                    f"/auth/v1/admin/users/{auth_user_id}",
                    json={"app_metadata": metadata},
                    headers=headers,
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.warning("Identity metadata sync failed for %s: %s", auth_user_id, exc)
                return False
        return True


def get_identity_client(request: Request) -> IdentityAdminClient:
    """FastAPI dependency: the client built in the app lifespan."""
    client = getattr(request.app.state, "identity", None)
    if client is None:
        raise RuntimeError("IdentityAdminClient not initialised -- app lifespan has not run")
    return client
