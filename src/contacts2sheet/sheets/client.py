"""Google Sheet webhook client."""

import asyncio
import json
import logging

import httpx

from contacts2sheet.exceptions import PersistenceError
from contacts2sheet.models import ContactRecord, SaveResult

logger = logging.getLogger(__name__)

# text/plain keeps the browser from sending a CORS preflight to Apps Script
CONTENT_TYPE = "text/plain;charset=utf-8"

DEFAULT_CONFIRM_DELAY = 1.5  # seconds


class SheetWebhookClient:
    """
    Appends contacts to a sheet through an Apps Script webhook.

    The webhook is treated as fire-and-forget: the response is never
    inspected, so success only means the request left without a transport
    error. After posting, the client waits ``confirm_delay`` seconds and
    then reports an unconfirmed success.
    """

    def __init__(
        self,
        confirm_delay: float = DEFAULT_CONFIRM_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.confirm_delay = confirm_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=30.0,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def append(self, url: str, record: ContactRecord) -> SaveResult:
        """
        Send one record to the webhook, to be appended as one row.

        Args:
            url: Webhook endpoint configured by the user
            record: Complete contact record

        Returns:
            SaveResult with ``confirmed=False``

        Raises:
            PersistenceError: On any transport error
        """
        payload = record.to_dict()
        client = await self._get_client()

        try:
            await client.post(
                url,
                content=json.dumps(payload),
                headers={"Content-Type": CONTENT_TYPE},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Webhook error: {e}")
            raise PersistenceError(url, e) from e

        await asyncio.sleep(self.confirm_delay)
        logger.info(f"Sent {record.first_name} {record.last_name} to sheet webhook")
        return SaveResult(url=url, fields_sent=len(payload))
