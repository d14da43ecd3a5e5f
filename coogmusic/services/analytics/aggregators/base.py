"""Base class for all aggregate-mode report aggregators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from ..config import ReportConfig
from ..models import DateRange, SectionSelection, User
from ..population import Population, is_countable
from ..repository import ReportRepository


@dataclass(frozen=True)
class AggregationContext:
    """Everything an aggregator reads; shared read-only between tasks."""

    repository: ReportRepository
    population: Population
    window: DateRange
    selection: SectionSelection
    config: ReportConfig

    @property
    def as_of(self) -> date:
        """Reference date for ages."""
        return self.window.end.date()

    def user(self, user_id: int) -> User | None:
        return self.population.users.get(user_id)

    def counterparts(self, ids: Iterable[int]) -> dict[int, User]:
        """
        Countable accounts among ``ids``, whatever their user type.

        Engagement with population-owned content counts from any listener or
        artist who is not staff or excluded and whose status the selection
        allows.
        """
        ids = set(ids)
        if not ids:
            return {}
        statuses = self.selection.statuses()
        users = self.repository.get_users(ids)
        return {
            uid: user
            for uid, user in users.items()
            if is_countable(user, self.config, statuses)
        }


class BaseAggregator(ABC):
    """Base class for all aggregators."""

    name: str = ""

    @abstractmethod
    def enabled(self, selection: SectionSelection) -> bool:
        """
        Whether this aggregator runs for a selection.

        Args:
            selection: Validated section toggles

        Returns:
            True if the aggregator should be dispatched
        """
        pass

    @abstractmethod
    def aggregate(self, context: AggregationContext) -> Any:
        """
        Compute this aggregator's section data.

        Runs on a worker thread and may issue blocking repository calls.

        Args:
            context: Population, window, selection and repository

        Returns:
            The section payload
        """
        pass
