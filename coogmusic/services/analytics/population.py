"""Resolves which accounts a report is about."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import ReportConfig
from .errors import UserNotFound
from .models import AccountStatus, SectionSelection, User, UserType
from .repository import ReportRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Population:
    """The set of accounts an aggregate report counts, keyed by user id."""

    users: dict[int, User] = field(default_factory=dict)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self.users

    def __len__(self) -> int:
        return len(self.users)

    @property
    def user_ids(self) -> frozenset[int]:
        return frozenset(self.users)

    def ids_of(self, user_type: UserType) -> frozenset[int]:
        return frozenset(uid for uid, user in self.users.items() if user.user_type is user_type)

    @property
    def listener_ids(self) -> frozenset[int]:
        return self.ids_of(UserType.LISTENER)

    @property
    def artist_ids(self) -> frozenset[int]:
        return self.ids_of(UserType.ARTIST)

    def sorted_users(self) -> list[User]:
        return sorted(self.users.values(), key=lambda user: (user.username, user.id))


def resolve_population(
    repository: ReportRepository,
    selection: SectionSelection,
    config: ReportConfig,
) -> Population:
    """Users of the enabled types and statuses, minus excluded accounts."""
    users = repository.find_users(selection.user_types(), selection.statuses())
    members = {
        user.id: user
        for user in users
        if not user.is_staff and not config.is_excluded(user.username)
    }
    logger.debug("Resolved population of %d users", len(members))
    return Population(users=members)


def resolve_user(repository: ReportRepository, username: str) -> User:
    """Exact, case-sensitive username lookup."""
    user = repository.find_user_by_username(username)
    if user is None or user.username != username:
        raise UserNotFound(username)
    return user


def is_countable(
    user: User | None,
    config: ReportConfig,
    statuses: frozenset[AccountStatus] = frozenset({AccountStatus.ACTIVE}),
) -> bool:
    """Whether an account may be counted as a counterpart of another account's content."""
    return (
        user is not None
        and not user.is_staff
        and user.status in statuses
        and not config.is_excluded(user.username)
    )
