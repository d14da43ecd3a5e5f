"""Country and age histograms over the population."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date

from ..config import AGE_BUCKETS, COUNTRY_CODES
from ..metrics import percentage
from ..models import SectionSelection, User
from ..results import AgeBucket, AgeHistogram, CountryBucket, CountryHistogram, Demographics
from .base import AggregationContext, BaseAggregator

logger = logging.getLogger(__name__)

UNKNOWN_COUNTRY = "Unknown"


def country_code(country: str) -> str:
    if country in COUNTRY_CODES:
        return COUNTRY_CODES[country]
    if country == UNKNOWN_COUNTRY:
        return "??"
    return country[:2].upper()


def age_bucket(age: int) -> str:
    for label, low, high in AGE_BUCKETS:
        if (low is None or age >= low) and (high is None or age <= high):
            return label
    # AGE_BUCKETS covers every integer
    raise ValueError(f"No age bucket for {age}")


def country_histogram(users: list[User]) -> CountryHistogram:
    counts = Counter((user.country or "").strip() or UNKNOWN_COUNTRY for user in users)
    total = len(users)
    buckets = [
        CountryBucket(
            country=country,
            code=country_code(country),
            count=count,
            ratio=percentage(count, total),
        )
        for country, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]
    return CountryHistogram(total=total, max_count=max(counts.values(), default=0), buckets=buckets)


def age_histogram(users: list[User], as_of: date) -> AgeHistogram:
    counts: Counter[str] = Counter()
    unknown = 0
    for user in users:
        age = user.age_on(as_of)
        if age is None:
            unknown += 1
            continue
        counts[age_bucket(max(age, 0))] += 1

    total = len(users)
    buckets = [
        AgeBucket(range=label, count=counts[label], ratio=percentage(counts[label], total))
        for label, _, _ in AGE_BUCKETS
        if counts[label]
    ]
    return AgeHistogram(
        total=total,
        max_count=max(counts.values(), default=0),
        unknown=unknown,
        buckets=buckets,
    )


class DemographicAggregator(BaseAggregator):
    name = "demographics"

    def enabled(self, selection: SectionSelection) -> bool:
        return selection.demographics_enabled()

    def aggregate(self, context: AggregationContext) -> Demographics:
        users = context.population.sorted_users()
        result = Demographics()
        if context.selection.geographics_enabled():
            result.countries = country_histogram(users)
        if context.selection.age_demographics_enabled():
            result.ages = age_histogram(users, context.as_of)
        logger.debug("Demographic aggregator over %d users", len(users))
        return result
