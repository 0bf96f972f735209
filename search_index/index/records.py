"""Index record schema and the pure helpers that build it."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from pydantic import BaseModel

from search_index.scraper.models import ExtractionResult, Section


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class IndexRecord(BaseModel):
    id: str
    url: str
    title: str
    content: str
    tags: list[str]
    section: Section


class IndexMeta(BaseModel):
    built_at: str
    site_root: str
    sitemap: str
    count: int
    sections: dict[str, int]


@dataclass
class IndexBundle:
    """Sorted records plus their metadata, as handed to an index sink."""

    records: list[IndexRecord]
    meta: IndexMeta


@dataclass
class BuildStats:
    total: int = 0
    done: int = 0
    records: int = 0
    skipped: int = 0
    empty: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def record_id(url: str, section: Section) -> str:
    """Stable identifier: the first 10 hex chars of ``sha1(url)`` plus the section."""
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:10]
    return f"u:{digest}:{section.value}"


def year_from_url(url: str, path_prefix: str) -> str:
    """Return the ``19xx`` segment that directly follows *path_prefix*, or ``""``."""
    pattern = re.escape(path_prefix.rstrip("/")) + r"/(19[0-9]{2})(?:/|$)"
    match = re.search(pattern, url)
    return match.group(1) if match else ""


def build_tags(section: Section, year: str, site_tag: str) -> list[str]:
    tags = [section.value]
    if year:
        tags.append(f"year:{year}")
    tags.append(site_tag)
    return tags


def build_record(
    url: str,
    title: str,
    extraction: ExtractionResult,
    *,
    path_prefix: str,
    site_tag: str,
    max_chars: int,
) -> IndexRecord:
    """Assemble the persisted record for one page.

    ``content`` is cut at *max_chars* characters with a plain slice.
    """
    section = extraction.section
    return IndexRecord(
        id=record_id(url, section),
        url=url,
        title=title or url,
        content=extraction.content[:max_chars],
        tags=build_tags(section, year_from_url(url, path_prefix), site_tag),
        section=section,
    )


def sort_records(records: Iterable[IndexRecord]) -> list[IndexRecord]:
    """Sort by ``url`` ascending; ties keep their relative order."""
    return sorted(records, key=lambda r: r.url)


def section_counts(records: Iterable[IndexRecord]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for record in records:
        counts[record.section.value] = counts.get(record.section.value, 0) + 1
    return counts


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
