"""Tests for population and target resolution."""

import pytest

from coogmusic.services.analytics.errors import UserNotFound
from coogmusic.services.analytics.models import SectionSelection
from coogmusic.services.analytics.population import is_countable, resolve_population, resolve_user


def test_population_uses_enabled_types_and_active_status(catalog, config):
    population = resolve_population(
        catalog, SectionSelection(include_listeners=True, include_artists=True), config
    )
    assert population.user_ids == {1, 2, 4, 5}
    assert population.listener_ids == {1, 2}
    assert population.artist_ids == {4, 5}


def test_population_with_suspended_accounts(catalog, config):
    population = resolve_population(
        catalog, SectionSelection(include_listeners=True, include_suspended=True), config
    )
    assert population.user_ids == {1, 2, 3}


def test_excluded_usernames_are_never_counted(catalog, config):
    """The configured test account is dropped even though it is an active listener."""
    population = resolve_population(catalog, SectionSelection(include_listeners=True), config)
    assert 7 not in population


def test_resolve_user_is_case_sensitive(catalog):
    assert resolve_user(catalog, "alice").id == 1
    with pytest.raises(UserNotFound) as excinfo:
        resolve_user(catalog, "Alice")
    assert excinfo.value.username == "Alice"


def test_countable_accounts(catalog, config):
    users = catalog.get_users()
    assert is_countable(users[1], config)
    assert not is_countable(users[3], config)
    assert not is_countable(users[6], config)
    assert not is_countable(users[7], config)
    assert not is_countable(None, config)


def test_countable_accounts_under_suspended_status_rule(catalog, config):
    users = catalog.get_users()
    statuses = SectionSelection(include_artists=True, include_suspended=True).statuses()
    assert is_countable(users[3], config, statuses)
    assert not is_countable(users[6], config, statuses)
    assert not is_countable(users[7], config, statuses)
