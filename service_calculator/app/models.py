"""
Data models for Calculator Service.
"""

import math
from typing import List, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for API payloads, serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CalculationRequest(ApiModel):
    """Request model for a calculation."""
    num1: float = Field(..., ge=0, allow_inf_nan=False, description="First number for calculation", examples=[10.5])
    num2: float = Field(..., ge=0, allow_inf_nan=False, description="Second number for calculation", examples=[5.5])


class CalculationResponse(ApiModel):
    """Result of a calculation."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    sum: float = Field(..., description="The sum of the numbers provided in the request", examples=[15.0])
    result_with_percentage: float = Field(..., description="The sum with the percentage applied", examples=[16.5])
    applied_percentage: float = Field(..., description="The percentage applied to the sum", examples=[10.0])


class PercentageSource(str, Enum):
    """Where a resolved percentage came from."""
    CACHE = "cache"
    EXTERNAL = "external"
    NONE = "none"


@dataclass(frozen=True)
class PercentageResult:
    """Outcome of a percentage lookup. Either a value or an error message."""
    value: Optional[float] = None
    source: PercentageSource = PercentageSource.NONE
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.error is None and self.value is not None

    @classmethod
    def from_cache(cls, value: float) -> "PercentageResult":
        return cls(value=value, source=PercentageSource.CACHE)

    @classmethod
    def from_external(cls, value: float) -> "PercentageResult":
        return cls(value=value, source=PercentageSource.EXTERNAL)

    @classmethod
    def unavailable(cls, error: str) -> "PercentageResult":
        return cls(error=error)


@dataclass
class CallHistory:
    """Audit record of a single API call."""
    endpoint: str
    parameters: str
    response_or_error: str
    date: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None


class CallHistoryResponse(ApiModel):
    """API representation of an audit record."""
    id: int = Field(..., description="Unique identifier for the call history entry", examples=[1])
    date: datetime = Field(..., description="Date and time when the call was made")
    endpoint: str = Field(..., description="Endpoint that was called", examples=["/api/calculate"])
    parameters: str = Field(..., description="Parameters sent in the call")
    response_or_error: str = Field(..., description="Response or error message from the call")

    @classmethod
    def from_record(cls, record: CallHistory) -> "CallHistoryResponse":
        return cls(
            id=record.id,
            date=record.date,
            endpoint=record.endpoint,
            parameters=record.parameters,
            response_or_error=record.response_or_error
        )


class Pagination(ApiModel):
    """Pagination metadata."""
    current_page: int
    total_items: int
    total_pages: int
    items_per_page: int


class PaginatedResponse(ApiModel):
    """A page of call history records."""
    data: List[CallHistoryResponse]
    pagination: Pagination


@dataclass
class Page:
    """A slice of stored records plus the overall count."""
    items: List[CallHistory]
    page: int
    size: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.size) if self.size else 0

    def to_response(self) -> PaginatedResponse:
        return PaginatedResponse(
            data=[CallHistoryResponse.from_record(item) for item in self.items],
            pagination=Pagination(
                current_page=self.page,
                total_items=self.total_items,
                total_pages=self.total_pages,
                items_per_page=len(self.items)
            )
        )
