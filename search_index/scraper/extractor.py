"""Content extraction: turns a parsed page into indexable text.

Gallery pages come in four mutually exclusive layouts.  The extractor tries
them in a fixed order and the first one that yields text wins:

1. **viewer**: a document/media viewer exposing a ``.dvz-indexable-text``
   element, enriched with strings mined from its JSON configuration
   (``<script class="dv-config" type="application/json">``).
2. **popup**: an artwork overlay (``.jsl-popup-content``) with artist,
   exhibition and dates fields.
3. **page**: Squarespace content blocks (``.sqs-block-content``).
4. **page**: the ``<main>`` landmark.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Union

from bs4 import BeautifulSoup, Tag

from search_index.scraper.models import ExtractionResult, Section
from search_index.text import clean_text

logger = logging.getLogger(__name__)

JsonValue = Union[str, int, float, bool, None, list["JsonValue"], dict[str, "JsonValue"]]

_VIEWER_TEXT = ".dvz-indexable-text"
_VIEWER_CONFIG = 'script.dv-config[type="application/json"]'
_POPUP = ".jsl-popup-content"
_POPUP_META = (".jsl-artist", ".jsl-exhibition", ".jsl-dates")
_PAGE_BLOCKS = ".sqs-block-content"

_META_SEPARATOR = " — "
_MIN_MINED_LENGTH = 6

# Key tokens whose values are binary/media references or identifiers.
_SKIP_KEY_TOKENS = frozenset({
    "url", "urls", "uri", "src", "srcset", "href", "link", "links",
    "image", "images", "img", "thumb", "thumbs", "thumbnail", "thumbnails",
    "file", "files", "filename", "path", "poster", "icon", "video", "audio",
    "media", "mime", "id", "ids", "uuid", "guid", "hash", "key", "slug",
})

# Key tokens whose values are descriptive, even when very short.
_TAKE_KEY_TOKENS = frozenset({
    "title", "subtitle", "name", "artist", "artists", "exhibition", "date",
    "dates", "year", "text", "description", "caption", "captions", "note",
    "notes", "summary", "label", "credit", "credits", "medium", "place",
    "location",
})

_URL_LIKE_RE = re.compile(r"^(?:[a-z][a-z0-9+.-]*://|//|www\.|data:|mailto:)", re.IGNORECASE)
_MEDIA_EXT_RE = re.compile(
    r"\.(?:jpe?g|png|gif|webp|avif|svg|tiff?|bmp|heic|mp4|m4v|mov|webm|mp3|m4a|wav|ogg|pdf|zip)"
    r"(?:[?#].*)?$",
    re.IGNORECASE,
)
_CDN_HOST_RE = re.compile(
    r"(?:squarespace-cdn\.com|static\d*\.squarespace\.com|cloudfront\.net|imgix\.net"
    r"|cloudinary\.com|amazonaws\.com)",
    re.IGNORECASE,
)
_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_KEY_SPLIT_RE = re.compile(r"[^a-z0-9]+")


# ---------------------------------------------------------------------------
# Viewer configuration mining
# ---------------------------------------------------------------------------

def _key_tokens(key: str) -> set[str]:
    """Split ``imageUrl`` / ``image_url`` / ``image-url`` into ``{"image", "url"}``."""
    return {t for t in _KEY_SPLIT_RE.split(_CAMEL_RE.sub("_", key).lower()) if t}


def _looks_like_media_reference(text: str) -> bool:
    return bool(
        _URL_LIKE_RE.match(text) or _MEDIA_EXT_RE.search(text) or _CDN_HOST_RE.search(text)
    )


def _keep_string(text: str, key: str) -> bool:
    if not text or _looks_like_media_reference(text):
        return False
    tokens = _key_tokens(key)
    if tokens & _SKIP_KEY_TOKENS:
        return False
    if len(text) < _MIN_MINED_LENGTH and not tokens & _TAKE_KEY_TOKENS:
        return False
    return True


def _walk(value: JsonValue, key: str, out: list[str]) -> None:
    if isinstance(value, str):
        text = clean_text(value)
        if _keep_string(text, key):
            out.append(text)
    elif isinstance(value, list):
        # Items inherit the key of the list that holds them.
        for item in value:
            _walk(item, key, out)
    elif isinstance(value, dict):
        for child_key, child in value.items():
            _walk(child, str(child_key), out)


def mine_config_text(config: JsonValue) -> str:
    """Collect the descriptive strings of a viewer configuration.

    Every string value is normalised, then dropped when it is a URL or media
    reference, when its key names a media/identifier field, or when it is
    shorter than six characters and its key is not descriptive.  Survivors
    are joined with a single space.
    """
    out: list[str] = []
    _walk(config, "", out)
    return " ".join(out)


def load_viewer_configs(soup: BeautifulSoup) -> list[JsonValue]:
    """Parse every viewer configuration block; malformed JSON is skipped."""
    configs: list[JsonValue] = []
    for script in soup.select(_VIEWER_CONFIG):
        raw = script.string or script.get_text() or "{}"
        try:
            configs.append(json.loads(raw))
        except ValueError:
            logger.debug("Ignoring malformed viewer config block")
    return configs


# ---------------------------------------------------------------------------
# Title resolution
# ---------------------------------------------------------------------------

def _viewer_config_title(soup: BeautifulSoup) -> str:
    script = soup.select_one(_VIEWER_CONFIG)
    if script is None:
        return ""
    try:
        config: Any = json.loads(script.string or script.get_text() or "{}")
    except ValueError:
        return ""
    if not isinstance(config, dict):
        return ""
    return clean_text(config.get("title"))


def resolve_title(soup: BeautifulSoup, url: str) -> str:
    """Best human title for a page; never empty.

    Precedence: viewer config ``title`` → ``og:title`` → ``<title>`` → *url*.
    """
    title = _viewer_config_title(soup)
    if title:
        return title

    og = soup.find("meta", attrs={"property": "og:title"})
    if og is not None:
        title = clean_text(og.get("content"))
        if title:
            return title

    if soup.title is not None:
        title = clean_text(soup.title.get_text())
        if title:
            return title

    return url


# ---------------------------------------------------------------------------
# Layout rules
# ---------------------------------------------------------------------------

def _text_of(element: Tag | None) -> str:
    return clean_text(element.get_text()) if element is not None else ""


def _extract_viewer(soup: BeautifulSoup) -> str:
    text = _text_of(soup.select_one(_VIEWER_TEXT))
    if not text:
        return ""
    mined = " ".join(filter(None, (mine_config_text(c) for c in load_viewer_configs(soup))))
    return clean_text(f"{text} {mined}")


def _extract_popup(soup: BeautifulSoup) -> str:
    popup = soup.select_one(_POPUP)
    if popup is None:
        return ""
    meta = _META_SEPARATOR.join(
        filter(None, (_text_of(soup.select_one(selector)) for selector in _POPUP_META))
    )
    body = _text_of(popup)
    return clean_text(" ".join(filter(None, (meta, body))))


def _extract_page_blocks(soup: BeautifulSoup) -> str:
    # Blocks are separated by a single space.
    return clean_text(" ".join(block.get_text() for block in soup.select(_PAGE_BLOCKS)))


def _extract_main(soup: BeautifulSoup) -> str:
    return _text_of(soup.find("main"))


_RULES = (
    (_extract_viewer, Section.VIEWER),
    (_extract_popup, Section.POPUP),
    (_extract_page_blocks, Section.PAGE),
    (_extract_main, Section.PAGE),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_html(html: str) -> BeautifulSoup:
    """Parse a fetched page with the stdlib-backed ``html.parser`` builder."""
    return BeautifulSoup(html, "html.parser")


def extract_content(soup: BeautifulSoup) -> ExtractionResult:
    """Apply the layout rules in order and return the first non-empty result.

    Returns ``ExtractionResult("", Section.PAGE)`` when no rule matches.
    """
    for rule, section in _RULES:
        content = rule(soup)
        if content:
            return ExtractionResult(content=content, section=section)
    return ExtractionResult(content="", section=Section.PAGE)
