# leaseiq/jobs/rotation.py
from __future__ import annotations

from datetime import datetime, timezone

from ..domain.types import ListingSource

# Fixed groups over the enabled sources; mixes fast and slow sites per group.
DEFAULT_GROUPS: tuple[tuple[ListingSource, ...], ...] = (
    (
        ListingSource.streeteasy,
        ListingSource.zillow,
        ListingSource.apartments_com,
        ListingSource.trulia,
        ListingSource.realtor,
    ),
    (
        ListingSource.zumper,
        ListingSource.renthop,
        ListingSource.rent_com,
        ListingSource.hotpads,
    ),
    (
        ListingSource.apartment_guide,
        ListingSource.rentals_com,
        ListingSource.apartment_list,
        ListingSource.padmapper,
    ),
)


class RotatingScheduler:
    """
    Picks one source group per invocation from the UTC hour:

        group_index = (hour // interval_hours) % len(groups)

    Stateless; the same `now` always yields the same group.
    """

    def __init__(
        self,
        groups: tuple[tuple[ListingSource, ...], ...] = DEFAULT_GROUPS,
        interval_hours: int = 2,
    ) -> None:
        if not groups:
            raise ValueError("at least one source group is required")
        if interval_hours <= 0 or 24 % interval_hours != 0:
            raise ValueError("interval_hours must be a positive divisor of 24")
        self.groups = groups
        self.interval_hours = interval_hours

    def group_index(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return (now.hour // self.interval_hours) % len(self.groups)

    def current_sources(self, now: datetime | None = None) -> list[ListingSource]:
        return list(self.groups[self.group_index(now)])

    def all_groups(self) -> list[list[ListingSource]]:
        return [list(g) for g in self.groups]

    def runs_per_day(self) -> float:
        return 24 / self.interval_hours / len(self.groups)
