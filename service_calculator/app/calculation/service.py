"""
Calculation orchestration for Calculator Service.
"""

import math
from typing import Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.errors import (
    PercentageUnavailableError, StorageUnavailableError, UnexpectedError, ValidationError
)
from ..audit.recorder import AuditRecorder
from ..cache.percentage_cache import PercentageCache
from ..models import CalculationRequest, CalculationResponse, Page, PaginatedResponse
from ..persistence import CallHistoryRepository


CALCULATE_ENDPOINT = "/api/calculate"


def apply_percentage(total: float, percentage: float) -> float:
    """Return ``total`` increased by ``percentage`` percent."""
    return total + (total * (percentage / 100))


class CalculationService:
    """Computes sum-plus-percentage results and serves call history."""

    def __init__(
        self,
        percentage_cache: PercentageCache,
        audit_recorder: AuditRecorder,
        repository: CallHistoryRepository,
        metrics: Optional[MetricsCollector] = None
    ):
        self.percentage_cache = percentage_cache
        self.audit_recorder = audit_recorder
        self.repository = repository
        self.metrics = metrics
        self.logger = get_logger("calculator.calculation")

    async def calculate(self, request: CalculationRequest) -> CalculationResponse:
        """Add both numbers and apply the current percentage.

        Exactly one audit record is dispatched per call, describing either the
        response or the error.
        """
        self.logger.info("Starting calculation", num1=request.num1, num2=request.num2)
        parameters = request.model_dump_json(by_alias=True)

        try:
            total = request.num1 + request.num2
            if not math.isfinite(total):
                raise OverflowError("The sum of num1 and num2 is not a finite number")

            result = await self.percentage_cache.resolve_percentage()
            if not result.available:
                raise PercentageUnavailableError(result.error)

            result_with_percentage = apply_percentage(total, result.value)
            if not math.isfinite(result_with_percentage):
                raise OverflowError("The result with percentage is not a finite number")

            response = CalculationResponse(
                sum=total,
                result_with_percentage=result_with_percentage,
                applied_percentage=result.value
            )
            serialized = response.model_dump_json(by_alias=True)

        except PercentageUnavailableError as e:
            self.logger.error("Percentage unavailable", error=e.message)
            self._record_outcome("unavailable")
            self.audit_recorder.record(CALCULATE_ENDPOINT, parameters, e.message)
            raise
        except Exception as e:
            self.logger.error("Unexpected error during calculation", error=str(e), exc_info=True)
            self._record_outcome("error")
            self.audit_recorder.record(CALCULATE_ENDPOINT, parameters, str(e))
            raise UnexpectedError(str(e)) from e

        self.logger.info(
            "Calculation completed successfully",
            sum=response.sum,
            result=response.result_with_percentage,
            percentage=response.applied_percentage,
            source=result.source.value
        )
        self._record_outcome("success")
        self.audit_recorder.record(CALCULATE_ENDPOINT, parameters, serialized)
        return response

    async def list_history(self, page: int = 1, size: int = 10) -> PaginatedResponse:
        """Return one page of call history ordered by ascending id."""
        if page < 1:
            raise ValidationError("The page number must be at least 1", {"page": page})
        if size < 1:
            raise ValidationError("The items per page must be at least 1", {"size": size})

        self.logger.info("Fetching call history", page=page, size=size)
        try:
            items, total = await self.repository.find_page(page, size)
        except Exception as e:
            self.logger.error("Failed to fetch call history", error=str(e), exc_info=True)
            raise StorageUnavailableError(f"Failed to fetch call history: {e}") from e

        self.logger.info("Call history fetched successfully", total_items=total)
        return Page(items=items, page=page, size=size, total_items=total).to_response()

    def _record_outcome(self, outcome: str):
        if self.metrics:
            self.metrics.increment_counter("calculations_total", outcome=outcome)
