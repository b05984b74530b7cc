"""
Payment provider clients.

Checkout talks to the provider only through ``PaymentProvider``; the
concrete client is built once at startup and handed to the services, so
tests can pass an in-memory fake instead.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import aiohttp

from exceptions.payment import PaymentProviderError
from models.payment import PaymentHandleDTO

logger = logging.getLogger(__name__)


class PaymentProvider(ABC):

    @abstractmethod
    async def create_payment_request(self, amount_minor_units: int, currency: str, reference: str) -> PaymentHandleDTO:
        """
        Ask the provider for a payment of ``amount_minor_units``.

        ``reference`` is the internal order id; the provider echoes it in its
        metadata. Any failure raises PaymentProviderError.
        """

    async def open(self) -> None:
        pass

    async def close(self) -> None:
        pass


class HttpPaymentGateway(PaymentProvider):
    """JSON-over-HTTPS payment API authenticated with an X-Api-Key header."""

    def __init__(self, base_url: str, api_key: str, timeout_seconds: int = 10):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    async def open(self) -> None:
        """Start the HTTP session; called once from the app lifespan."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"X-Api-Key": self.api_key, "Content-Type": "application/json"},
            )
            logger.info(f"[Payment] Gateway session opened for {self.base_url}")

    async def create_payment_request(self, amount_minor_units: int, currency: str, reference: str) -> PaymentHandleDTO:
        body = {
            "amount": amount_minor_units,
            "currency": currency,
            "reference": reference,
        }
        if self._session is None or self._session.closed:
            raise PaymentProviderError("gateway session is not open")

        try:
            async with self._session.post(f"{self.base_url}/payments", json=body) as response:
                if response.status >= 400:
                    text = await response.text()
                    logger.error(f"[Payment] Provider rejected request for order {reference}: "
                                 f"HTTP {response.status} {text[:200]}")
                    raise PaymentProviderError(f"HTTP {response.status}", status_code=response.status)
                data = await response.json()
        except asyncio.TimeoutError:
            # Checked first: aiohttp timeout errors are also ClientErrors
            logger.error(f"[Payment] Provider timed out for order {reference}")
            raise PaymentProviderError("timeout")
        except aiohttp.ClientError as e:
            logger.error(f"[Payment] Provider unreachable for order {reference}: {e}")
            raise PaymentProviderError("provider unreachable")

        provider_id = data.get("id") if isinstance(data, dict) else None
        if not provider_id:
            raise PaymentProviderError("response without payment id")

        logger.info(f"[Payment] Created payment {provider_id} for order {reference} ({amount_minor_units} {currency})")
        return PaymentHandleDTO(
            reference=str(provider_id),
            amount_minor_units=amount_minor_units,
            currency=currency,
            client_secret=data.get("client_secret"),
            payment_url=data.get("payment_url"),
        )

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
