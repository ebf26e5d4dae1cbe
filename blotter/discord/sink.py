"""Discord channel used as the notification sink for filed reports.

Talks to the Discord REST API directly with an ``httpx.AsyncClient``:

- ``post`` creates a channel message and returns its id
- ``retract`` deletes it; a message that is already gone counts as success
- a single 429 is retried after Discord's ``retry_after`` (capped)
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional, Protocol

import httpx

from blotter import settings
from blotter.discord.messages import OutgoingMessage
from blotter.errors import SinkError

logger = logging.getLogger(__name__)

UNKNOWN_MESSAGE = 10008
MAX_RETRY_AFTER = 5.0


class NotificationSink(Protocol):
    async def post(self, message: OutgoingMessage) -> str: ...

    async def retract(self, message_id: str) -> None: ...

    async def aclose(self) -> None: ...


def _error_code(response: httpx.Response) -> Optional[int]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("code") if isinstance(body, dict) else None


def _retry_after(response: httpx.Response) -> float:
    try:
        body = response.json()
        value = float(body.get("retry_after", 1.0))
    except (ValueError, AttributeError, TypeError):
        value = float(response.headers.get("Retry-After", 1.0) or 1.0)
    return min(max(value, 0.0), MAX_RETRY_AFTER)


class DiscordSink:
    """Post and delete messages in one Discord channel as a bot."""

    def __init__(
        self,
        token: str,
        channel_id: str,
        timeout: float = 10.0,
        base_url: str = "https://discord.com/api/v10",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.channel_id = channel_id
        self.timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bot {token}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls) -> Optional["DiscordSink"]:
        """Build a sink from the environment, or ``None`` when unconfigured."""
        if not settings.discord_sink_configured():
            logger.warning("Discord bot token or channel id not set; reports will be stored locally only")
            return None
        return cls(
            settings.DISCORD_BOT_TOKEN,
            settings.DISCORD_CHANNEL_ID,
            timeout=settings.DISCORD_TIMEOUT,
            base_url=settings.DISCORD_API_BASE,
        )

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
            if response.status_code == 429:
                delay = _retry_after(response)
                logger.warning("Discord rate limited %s %s, retrying in %.1fs", method, url, delay)
                await asyncio.sleep(delay)
                response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise SinkError(f"Discord request failed: {exc}") from exc
        return response

    async def post(self, message: OutgoingMessage) -> str:
        url = f"/channels/{self.channel_id}/messages"
        payload = {"content": message.content}
        if message.files:
            payload["attachments"] = [
                {"id": i, "filename": name} for i, (name, _) in enumerate(message.files)
            ]
            files = {
                f"files[{i}]": (name, data, "image/png") for i, (name, data) in enumerate(message.files)
            }
            response = await self._request(
                "POST", url, data={"payload_json": json.dumps(payload)}, files=files
            )
        else:
            response = await self._request("POST", url, json=payload)

        if response.status_code >= 400:
            raise SinkError(
                f"Discord rejected message ({response.status_code}): {response.text[:200]}",
                status_code=response.status_code,
            )
        message_id = str(response.json().get("id", ""))
        if not message_id:
            raise SinkError("Discord response did not include a message id", status_code=response.status_code)
        logger.info("Posted Discord message %s", message_id)
        return message_id

    async def retract(self, message_id: str) -> None:
        response = await self._request("DELETE", f"/channels/{self.channel_id}/messages/{message_id}")
        if response.status_code in (200, 204):
            logger.info("Deleted Discord message %s", message_id)
            return
        if response.status_code == 404 or _error_code(response) == UNKNOWN_MESSAGE:
            logger.info("Discord message %s was already deleted", message_id)
            return
        raise SinkError(
            f"Failed to delete Discord message {message_id} ({response.status_code})",
            status_code=response.status_code,
        )

    async def aclose(self) -> None:
        await self._client.aclose()
