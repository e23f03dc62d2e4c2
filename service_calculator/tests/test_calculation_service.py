"""
Unit tests for CalculationService.
"""

import json
import pytest
from unittest.mock import AsyncMock, patch
from pydantic import ValidationError as PydanticValidationError

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_calculator.app.audit.recorder import AuditRecorder
from service_calculator.app.cache.percentage_cache import PercentageCache
from service_calculator.app.calculation.service import (
    CalculationService, CALCULATE_ENDPOINT, apply_percentage
)
from service_calculator.app.models import CalculationRequest, CallHistory
from service_calculator.app.persistence import InMemoryCallHistoryRepository
from service_calculator.app.providers import PercentageProvider
from shared.errors import (
    PercentageUnavailableError, StorageUnavailableError, UnexpectedError, ValidationError
)
from shared.metrics import MetricsCollector


class TestCalculationService:
    """Test cases for CalculationService."""

    @pytest.fixture
    def mock_redis(self):
        redis_client = AsyncMock()
        redis_client.get.return_value = "10.0"
        return redis_client

    @pytest.fixture
    def mock_provider(self):
        provider = AsyncMock(spec=PercentageProvider)
        provider.fetch_percentage.return_value = 10.0
        return provider

    @pytest.fixture
    def repository(self):
        return InMemoryCallHistoryRepository()

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("calculator")

    @pytest.fixture
    def service(self, mock_redis, mock_provider, repository, metrics):
        """Create CalculationService wired to mocks and in-memory storage."""
        cache = PercentageCache(mock_redis, mock_provider, metrics=metrics)
        recorder = AuditRecorder(repository, metrics=metrics)
        return CalculationService(cache, recorder, repository, metrics=metrics)

    @pytest.mark.asyncio
    async def test_calculate_with_cached_percentage(self, service, repository, mock_provider, metrics):
        """10 + 20 with a cached 10% gives 33."""
        response = await service.calculate(CalculationRequest(num1=10.0, num2=20.0))
        await service.audit_recorder.drain()

        assert response.sum == 30.0
        assert response.result_with_percentage == pytest.approx(33.0)
        assert response.applied_percentage == 10.0
        mock_provider.fetch_percentage.assert_not_awaited()

        assert len(repository.records) == 1
        entry = repository.records[0]
        assert entry.endpoint == CALCULATE_ENDPOINT
        assert json.loads(entry.parameters) == {"num1": 10.0, "num2": 20.0}
        assert json.loads(entry.response_or_error) == {
            "sum": 30.0,
            "resultWithPercentage": response.result_with_percentage,
            "appliedPercentage": 10.0
        }
        assert metrics.registry.get_sample_value("calculations_total", {"outcome": "success"}) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("num1,num2,cached", [
        (0.0, 0.0, "10.0"),
        (1.5, 2.5, "20.0"),
        (100.0, 0.0, "0.0"),
        (7.0, 3.0, "150.5"),
    ])
    async def test_result_formula(self, service, mock_redis, num1, num2, cached):
        """resultWithPercentage is sum + sum * percentage / 100."""
        mock_redis.get.return_value = cached

        response = await service.calculate(CalculationRequest(num1=num1, num2=num2))

        percentage = float(cached)
        total = num1 + num2
        assert response.sum == total
        assert response.applied_percentage == percentage
        assert response.result_with_percentage == pytest.approx(total + total * (percentage / 100))

    @pytest.mark.asyncio
    async def test_calculate_on_cache_miss(self, service, mock_redis, mock_provider, repository):
        """A miss fetches from the provider once and caches the value."""
        mock_redis.get.return_value = None

        response = await service.calculate(CalculationRequest(num1=5.0, num2=5.0))
        await service.audit_recorder.drain()

        assert response.applied_percentage == 10.0
        assert response.result_with_percentage == pytest.approx(11.0)
        mock_provider.fetch_percentage.assert_awaited_once()
        mock_redis.setex.assert_awaited_once_with("external_percentage", 1800, "10.0")
        assert len(repository.records) == 1

    @pytest.mark.asyncio
    async def test_cache_failure_raises_and_audits(self, service, mock_redis, mock_provider, repository, metrics):
        """A cache read error surfaces as PercentageUnavailableError and is audited."""
        mock_redis.get.side_effect = ConnectionError("Connection refused")

        with pytest.raises(PercentageUnavailableError) as exc_info:
            await service.calculate(CalculationRequest(num1=1.0, num2=2.0))
        await service.audit_recorder.drain()

        assert exc_info.value.message == "Failed to retrieve cached percentage: Connection refused"
        mock_provider.fetch_percentage.assert_not_awaited()
        assert len(repository.records) == 1
        assert repository.records[0].endpoint == CALCULATE_ENDPOINT
        assert repository.records[0].response_or_error == exc_info.value.message
        assert metrics.registry.get_sample_value("calculations_total", {"outcome": "unavailable"}) == 1

    @pytest.mark.asyncio
    async def test_provider_without_value_raises(self, service, mock_redis, mock_provider, repository):
        mock_redis.get.return_value = None
        mock_provider.fetch_percentage.return_value = None

        with pytest.raises(PercentageUnavailableError):
            await service.calculate(CalculationRequest(num1=1.0, num2=2.0))
        await service.audit_recorder.drain()

        assert repository.records[0].response_or_error == "Percentage service failed and no cache available."

    @pytest.mark.asyncio
    async def test_unexpected_error_is_wrapped_and_audited(self, service, repository, metrics):
        """Any other failure becomes UnexpectedError and is still audited."""
        with patch.object(
            service.percentage_cache, "resolve_percentage", AsyncMock(side_effect=TypeError("boom"))
        ):
            with pytest.raises(UnexpectedError) as exc_info:
                await service.calculate(CalculationRequest(num1=1.0, num2=2.0))
        await service.audit_recorder.drain()

        assert exc_info.value.message == "boom"
        assert isinstance(exc_info.value.__cause__, TypeError)
        assert len(repository.records) == 1
        assert repository.records[0].response_or_error == "boom"
        assert metrics.registry.get_sample_value("calculations_total", {"outcome": "error"}) == 1

    @pytest.mark.asyncio
    async def test_overflowing_sum_is_unexpected_error(self, service, mock_redis, repository, metrics):
        """Finite inputs whose sum overflows fail instead of answering with null."""
        with pytest.raises(UnexpectedError) as exc_info:
            await service.calculate(CalculationRequest(num1=1e308, num2=1e308))
        await service.audit_recorder.drain()

        assert exc_info.value.message == "The sum of num1 and num2 is not a finite number"
        mock_redis.get.assert_not_awaited()
        assert len(repository.records) == 1
        assert repository.records[0].response_or_error == exc_info.value.message
        assert metrics.registry.get_sample_value("calculations_total", {"outcome": "error"}) == 1

    @pytest.mark.asyncio
    async def test_overflowing_result_is_unexpected_error(self, service, mock_redis, repository):
        mock_redis.get.return_value = "100.0"

        with pytest.raises(UnexpectedError) as exc_info:
            await service.calculate(CalculationRequest(num1=1e308, num2=0.0))
        await service.audit_recorder.drain()

        assert exc_info.value.message == "The result with percentage is not a finite number"
        assert repository.records[0].response_or_error == exc_info.value.message

    @pytest.mark.asyncio
    async def test_non_finite_cached_percentage_is_unavailable(self, service, mock_redis, mock_provider, repository):
        mock_redis.get.return_value = "nan"

        with pytest.raises(PercentageUnavailableError) as exc_info:
            await service.calculate(CalculationRequest(num1=1.0, num2=2.0))
        await service.audit_recorder.drain()

        assert exc_info.value.message.startswith("Failed to retrieve cached percentage:")
        mock_provider.fetch_percentage.assert_not_awaited()
        assert repository.records[0].response_or_error == exc_info.value.message

    @pytest.mark.parametrize("value", [float("inf"), float("nan")])
    def test_request_rejects_non_finite_numbers(self, value):
        with pytest.raises(PydanticValidationError):
            CalculationRequest(num1=value, num2=1.0)

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_affect_result(self, service, repository):
        """A broken audit store never fails the calculation."""
        repository.save = AsyncMock(side_effect=RuntimeError("database is down"))

        response = await service.calculate(CalculationRequest(num1=10.0, num2=20.0))
        await service.audit_recorder.drain()

        assert response.sum == 30.0
        repository.save.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_history_first_page(self, service, repository):
        """15 records, page 1 of size 10."""
        for i in range(15):
            await repository.save(CallHistory(endpoint=CALCULATE_ENDPOINT, parameters=str(i), response_or_error="ok"))

        page = await service.list_history(page=1, size=10)

        assert [item.id for item in page.data] == list(range(1, 11))
        assert page.pagination.current_page == 1
        assert page.pagination.total_items == 15
        assert page.pagination.total_pages == 2
        assert page.pagination.items_per_page == 10

    @pytest.mark.asyncio
    async def test_list_history_last_page(self, service, repository):
        for i in range(15):
            await repository.save(CallHistory(endpoint=CALCULATE_ENDPOINT, parameters=str(i), response_or_error="ok"))

        page = await service.list_history(page=2, size=10)

        assert [item.id for item in page.data] == list(range(11, 16))
        assert page.pagination.current_page == 2
        assert page.pagination.items_per_page == 5

    @pytest.mark.asyncio
    async def test_list_history_empty(self, service):
        page = await service.list_history()

        assert page.data == []
        assert page.pagination.total_items == 0
        assert page.pagination.total_pages == 0

    @pytest.mark.asyncio
    async def test_list_history_is_idempotent(self, service, repository):
        for i in range(3):
            await repository.save(CallHistory(endpoint=CALCULATE_ENDPOINT, parameters=str(i), response_or_error="ok"))

        first = await service.list_history(page=1, size=2)
        second = await service.list_history(page=1, size=2)

        assert first == second
        assert len(repository.records) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page,size", [(0, 10), (1, 0), (-1, -1)])
    async def test_list_history_rejects_bad_arguments(self, service, page, size):
        with pytest.raises(ValidationError):
            await service.list_history(page=page, size=size)

    @pytest.mark.asyncio
    async def test_list_history_storage_failure(self, service, repository):
        repository.find_page = AsyncMock(side_effect=OSError("connection lost"))

        with pytest.raises(StorageUnavailableError):
            await service.list_history()


def test_apply_percentage():
    assert apply_percentage(30.0, 10.0) == pytest.approx(33.0)
    assert apply_percentage(0.0, 50.0) == 0.0
    assert apply_percentage(200.0, 0.0) == 200.0
