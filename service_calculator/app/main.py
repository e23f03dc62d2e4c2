"""
Calculator service for the Percentage Calculator.
"""

from typing import Optional

from fastapi import Query, Request
from fastapi.responses import PlainTextResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import PercentageUnavailableError, UnexpectedError

from .audit.recorder import AuditRecorder
from .cache.percentage_cache import PercentageCache, create_redis_client
from .calculation.service import CalculationService
from .models import CalculationRequest, CalculationResponse, PaginatedResponse
from .persistence import (
    CallHistoryRepository, InMemoryCallHistoryRepository, PostgreSQLCallHistoryRepository
)
from .providers import PercentageProvider, StaticPercentageProvider, HttpPercentageProvider


class CalculatorService(BaseService):
    """Calculator service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        redis_client=None,
        repository: Optional[CallHistoryRepository] = None,
        provider: Optional[PercentageProvider] = None
    ):
        super().__init__("calculator", 8080, config)

        # Initialize components
        self.redis = redis_client if redis_client is not None else create_redis_client(
            self.config.redis_host,
            self.config.redis_port,
            self.config.redis_db
        )
        self.provider = provider or self._build_provider()
        self.repository = repository or self._build_repository()

        self.percentage_cache = PercentageCache(self.redis, self.provider, metrics=self.metrics)
        self.audit_recorder = AuditRecorder(self.repository, metrics=self.metrics)
        self.calculation_service = CalculationService(
            self.percentage_cache,
            self.audit_recorder,
            self.repository,
            metrics=self.metrics
        )

        self._setup_calculator_routes()

    def _build_provider(self) -> PercentageProvider:
        if self.config.percentage_provider_url:
            return HttpPercentageProvider(self.config.percentage_provider_url)
        return StaticPercentageProvider(self.config.static_percentage)

    def _build_repository(self) -> CallHistoryRepository:
        if self.config.storage_backend == "memory":
            return InMemoryCallHistoryRepository()
        return PostgreSQLCallHistoryRepository(self.config.postgres_dsn)

    def _setup_calculator_routes(self):
        """Set up calculator-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "calculator",
                "message": "Percentage Calculator - Calculator Service",
                "version": "1.0.0",
                "capabilities": ["calculation", "caching", "audit"]
            }

        @self.app.post(
            "/api/calculate",
            response_model=CalculationResponse,
            summary="Calculate sum and percentage result",
            responses={
                500: {"description": "Internal server error"},
                503: {"description": "Service unavailable"}
            }
        )
        async def calculate(request: CalculationRequest):
            """Add two numbers and apply the current percentage."""
            self.logger.info("Received calculation request", num1=request.num1, num2=request.num2)
            with self.metrics.time_operation("calculation_duration_seconds"):
                return await self.calculation_service.calculate(request)

        @self.app.get(
            "/api/history",
            response_model=PaginatedResponse,
            summary="Get call history",
            responses={
                503: {"description": "Service unavailable"}
            }
        )
        async def history(
            page: int = Query(1, ge=1, description="Page number", examples=[1]),
            size: int = Query(10, ge=1, description="Items per page", examples=[10])
        ):
            """Page through recorded calls, oldest first."""
            self.logger.info("Received request to fetch call history", page=page, size=size)
            return await self.calculation_service.list_history(page, size)

        @self.app.exception_handler(PercentageUnavailableError)
        async def percentage_unavailable_handler(request: Request, exc: PercentageUnavailableError):
            """Report an unresolvable percentage as 503 with the error message."""
            self.logger.error("Percentage unavailable", message=exc.message)
            self.metrics.record_error(exc.code)
            return PlainTextResponse(exc.message, status_code=503)

        @self.app.exception_handler(UnexpectedError)
        async def unexpected_error_handler(request: Request, exc: UnexpectedError):
            """Report an unexpected calculation failure as 500."""
            self.logger.error("Unexpected error occurred", message=exc.message)
            self.metrics.record_error(exc.code)
            return PlainTextResponse(f"An unexpected error occurred: {exc.message}", status_code=500)

    async def _check_dependencies(self):
        """Check calculator service dependencies."""
        dependencies = {}

        dependencies["redis"] = "ok" if await self.percentage_cache.health_check() else "error"
        dependencies["storage"] = "ok" if await self.repository.health_check() else "error"

        return dependencies

    async def start(self):
        """Start calculator service components."""
        await self.repository.start()
        self.logger.info(
            "Calculator service started",
            storage=self.config.storage_backend,
            provider=type(self.provider).__name__
        )

    async def stop(self):
        """Stop calculator service components."""
        await self.audit_recorder.stop()
        await self.repository.stop()
        await self.percentage_cache.close()

        self.logger.info("Calculator service stopped")


def create_app():
    """Create calculator service application."""
    service = CalculatorService()
    return service.app


if __name__ == "__main__":
    service = CalculatorService()
    service.run()
