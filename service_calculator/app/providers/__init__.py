"""
Percentage providers for Calculator Service.

A provider is the source of truth consulted on a cache miss. The static
provider answers with a constant; the HTTP provider queries a remote
service and reports any failure as an absent value.
"""

from .percentage_provider import PercentageProvider, StaticPercentageProvider, HttpPercentageProvider

__all__ = ["PercentageProvider", "StaticPercentageProvider", "HttpPercentageProvider"]
