"""
Report Engine

Single entry point for report generation: validate, resolve the population
(or the target user), run the enabled aggregators or drill-down branches
concurrently, then assemble one ``ReportResult``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Callable

from .aggregators import AggregationContext, BaseAggregator, default_aggregators
from .assembler import assemble_aggregate, assemble_individual
from .config import ReportConfig
from .drilldown import DrillDownBuilder
from .errors import AggregationFailure, ReportError
from .models import ReportMode, ReportRequest
from .population import resolve_population, resolve_user
from .repository import PostgresReportRepository, ReportRepository
from .results import ReportResult
from .validation import ReportQuery, validate_report_request

logger = logging.getLogger(__name__)


class ReportEngine:
    """Builds analytics reports from a read-only repository."""

    def __init__(
        self,
        repository: ReportRepository,
        config: ReportConfig | None = None,
        aggregators: list[BaseAggregator] | None = None,
    ):
        self.repository = repository
        self.config = config or ReportConfig()
        self.aggregators = aggregators if aggregators is not None else default_aggregators()
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="report",
        )

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    async def generate_report(self, query: ReportQuery, today: date | None = None) -> ReportResult:
        """
        Generate a report for a raw query.

        Args:
            query: Unvalidated request parameters
            today: Current UTC date (injected for tests)

        Returns:
            AggregateResult or one of the individual result variants

        Raises:
            ReportError: Validation, lookup or aggregation failure
        """
        request = validate_report_request(query, today=today, config=self.config)
        started = time.monotonic()
        logger.info(
            "Generating %s report for %s..%s",
            request.mode.value,
            request.window.start.date(),
            request.window.end.date(),
        )

        if request.mode is ReportMode.INDIVIDUAL:
            result = await self._individual(request)
        else:
            result = await self._aggregate(request)

        logger.info(
            "Generated %s report in %.2fs",
            result.kind,
            time.monotonic() - started,
        )
        return result

    async def _run(self, stage: str, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, func, *args)
        except ReportError:
            raise
        except Exception as e:
            logger.exception("Report stage %s failed", stage)
            raise AggregationFailure(stage, e) from e

    async def _gather(self, jobs: dict[str, tuple[Callable[..., Any], tuple]]) -> dict[str, Any]:
        """Run jobs as sibling tasks; the first failure cancels the rest."""
        try:
            async with asyncio.TaskGroup() as group:
                tasks = {
                    name: group.create_task(self._run(name, func, *args))
                    for name, (func, args) in jobs.items()
                }
        except ExceptionGroup as group_error:
            # Surface the first domain error instead of the group
            for error in group_error.exceptions:
                if isinstance(error, ReportError):
                    raise error from None
            raise
        return {name: task.result() for name, task in tasks.items()}

    async def _aggregate(self, request: ReportRequest) -> ReportResult:
        selection = request.sections
        population = await self._run(
            "population", resolve_population, self.repository, selection, self.config
        )
        context = AggregationContext(
            repository=self.repository,
            population=population,
            window=request.window,
            selection=selection,
            config=self.config,
        )
        jobs = {
            aggregator.name: (aggregator.aggregate, (context,))
            for aggregator in self.aggregators
            if aggregator.enabled(selection)
        }
        logger.debug("Dispatching aggregators: %s", ", ".join(jobs))
        outputs = await self._gather(jobs)
        return assemble_aggregate(request.window, selection, outputs)

    async def _individual(self, request: ReportRequest) -> ReportResult:
        user = await self._run("user lookup", resolve_user, self.repository, request.username)
        builder = DrillDownBuilder(self.repository, user, request.window, self.config)
        jobs = {name: (branch, ()) for name, branch in builder.branches().items()}
        logger.debug("Dispatching drill-down branches for %s: %s", user.username, ", ".join(jobs))
        outputs = await self._gather(jobs)
        return assemble_individual(user, request.window, outputs)


_engine: ReportEngine | None = None


def get_report_engine() -> ReportEngine:
    """Get the singleton report engine instance."""
    global _engine
    if _engine is None:
        _engine = ReportEngine(PostgresReportRepository(), ReportConfig.from_env())
    return _engine


def close_report_engine() -> None:
    """Shut down the singleton's worker pool, if it was ever built."""
    global _engine
    if _engine is not None:
        _engine.close()
        _engine = None
