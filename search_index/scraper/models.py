"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Section(str, Enum):
    """Which extraction rule produced a page's content."""

    VIEWER = "viewer"
    POPUP = "popup"
    PAGE = "page"


@dataclass
class RawPage:
    """The raw HTTP response for a single URL fetch."""

    url: str
    html: str
    status_code: int


@dataclass
class ExtractionResult:
    """Indexable text pulled out of one page.

    An empty ``content`` tells the assembler to drop the page; it is not an
    error.
    """

    content: str
    section: Section = Section.PAGE
