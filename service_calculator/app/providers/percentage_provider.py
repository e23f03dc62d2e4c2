"""
External percentage providers for Calculator Service.
"""

import math
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from shared.logging import get_logger


class PercentageProvider(ABC):
    """Source of truth for the current percentage."""

    @abstractmethod
    async def fetch_percentage(self) -> Optional[float]:
        """Return the current percentage, or None when it cannot be obtained."""


class StaticPercentageProvider(PercentageProvider):
    """Provider that always answers with a fixed percentage."""

    def __init__(self, value: float = 10.0):
        self.value = value
        self.logger = get_logger("calculator.provider.static")

    async def fetch_percentage(self) -> Optional[float]:
        self.logger.info("Calling external percentage service", provider="static")
        return self.value


class HttpPercentageProvider(PercentageProvider):
    """Provider backed by a remote HTTP endpoint returning ``{"percentage": <number>}``."""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout
        self.logger = get_logger("calculator.provider.http")

    async def fetch_percentage(self) -> Optional[float]:
        self.logger.info("Calling external percentage service", provider="http", url=self.url)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.url)

            if response.status_code != 200:
                self.logger.error(
                    "Percentage service returned an error",
                    status_code=response.status_code
                )
                return None

            percentage = float(response.json()["percentage"])
            if not math.isfinite(percentage):
                self.logger.error("Percentage service returned a non-finite value", value=str(percentage))
                return None
            return percentage

        except httpx.HTTPError as e:
            self.logger.error("Percentage service HTTP error", error=str(e))
            return None
        except (KeyError, TypeError, ValueError) as e:
            self.logger.error("Malformed percentage service response", error=str(e))
            return None
