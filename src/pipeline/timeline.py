# src/pipeline/timeline.py — v2
"""Order, filter and group titles by amendment, issue or currency date."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Iterable, Literal

from ecfrcount.core.models import DateGroup, TimelineTitle, TitleMetadata

logger = logging.getLogger(__name__)

DateField = Literal["latest_amended_on", "latest_issue_date", "up_to_date_as_of"]


def title_date(title: TitleMetadata, field: DateField) -> date | None:
    """Parsed ``field`` of a title, None when missing or unparseable."""
    value = getattr(title, field)
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.warning("Title %d has invalid %s %r", title.number, field, value)
        return None


def sort_titles_by_date(
    titles: Iterable[TitleMetadata],
    field: DateField = "up_to_date_as_of",
) -> list[TitleMetadata]:
    """All titles, most recent ``field`` first.

    Titles without a usable date keep their relative order at the end.
    """
    dated: list[tuple[date, TitleMetadata]] = []
    undated: list[TitleMetadata] = []
    for title in titles:
        day = title_date(title, field)
        if day is None:
            undated.append(title)
        else:
            dated.append((day, title))
    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [title for _, title in dated] + undated


def titles_in_range(
    titles: Iterable[TitleMetadata],
    start: date,
    end: date,
    field: DateField = "up_to_date_as_of",
) -> list[TitleMetadata]:
    """Titles whose ``field`` falls within ``start..end`` (inclusive), newest first.

    Raises:
        ValueError: ``start`` is after ``end``.
    """
    if start > end:
        raise ValueError(f"Start date {start} is after end date {end}")
    in_range: list[TitleMetadata] = []
    for title in titles:
        day = title_date(title, field)
        if day is not None and start <= day <= end:
            in_range.append(title)
    return sort_titles_by_date(in_range, field)


def group_titles_by_date(
    titles: Iterable[TitleMetadata],
    field: DateField = "latest_amended_on",
    today: date | None = None,
) -> list[DateGroup]:
    """Bucket non-reserved titles by ``field``.

    Titles without the date (or with an unparseable one) are skipped. Inside a
    group titles are ordered by number; each carries the days elapsed since
    the date.
    """
    today = today or datetime.now(timezone.utc).date()
    buckets: dict[date, list[TimelineTitle]] = defaultdict(list)

    for title in titles:
        if title.reserved:
            continue
        day = title_date(title, field)
        if day is None:
            continue
        buckets[day].append(
            TimelineTitle(
                number=title.number,
                name=title.name,
                latest_issue_date=title.latest_issue_date,
                latest_amended_on=title.latest_amended_on,
                up_to_date_as_of=title.up_to_date_as_of,
                days_since=(today - day).days,
            )
        )

    return [
        DateGroup(
            date=day.isoformat(),
            count=len(entries),
            titles=sorted(entries, key=lambda t: t.number),
        )
        for day, entries in sorted(buckets.items(), reverse=True)
    ]
