import logging
from typing import Any, Dict, Optional

import httpx

from config.settings import settings
from core.errors import RemoteFailureError
from core.services.automation_dispatcher import AutomationDispatcher

logger = logging.getLogger(__name__)


class WebhookAutomationDispatcher(AutomationDispatcher):
    """POST JSON на вебхук сервиса (n8n / Zapier). Повторов нет"""
    def __init__(self, timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout if timeout is not None else settings.WEBHOOK_TIMEOUT_SECONDS
        self.transport = transport

    def url_for(self, service: str) -> str:
        return settings.webhook_url(service)

    async def dispatch(self, service: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = self.url_for(service)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            logger.warning("webhook %s unreachable: %s", url, e)
            raise RemoteFailureError(f"Automation endpoint unreachable: {e}") from e
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            # кривой URL из окружения или несериализуемый payload
            logger.warning("webhook %s request not sent: %s", url, e)
            raise RemoteFailureError(f"Automation request could not be sent: {e}") from e

        if not response.is_success:
            logger.warning("webhook %s answered %s", url, response.status_code)
            raise RemoteFailureError(f"HTTP error: {response.status_code}", status_code=response.status_code)
        try:
            data = response.json()
        except ValueError as e:
            raise RemoteFailureError("Automation endpoint returned invalid JSON",
                                     status_code=response.status_code) from e
        if not isinstance(data, dict):
            data = {"result": data}
        logger.info("webhook %s ok service=%s", url, service)
        return data
