"""Tests for record building and the end-to-end build pipeline.

HTTP traffic is mocked with ``respx``; the output goes to an in-memory sink
or, for the determinism test, a :class:`FileIndexSink` under ``tmp_path``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx
import pytest
import respx

from search_index.errors import SitemapError
from search_index.index.assembler import assemble_bundle, build_index, collect_records
from search_index.index.records import (
    IndexBundle,
    IndexRecord,
    build_record,
    format_timestamp,
    record_id,
    section_counts,
    year_from_url,
)
from search_index.index.sink import FileIndexSink
from search_index.scraper.models import ExtractionResult, Section

from tests.conftest import SITEMAP_URL, make_settings, page_html, sitemap_xml

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)
BASE = "https://gallery.test/jeansellem"


class MemorySink:
    def __init__(self) -> None:
        self.bundles: list[IndexBundle] = []

    def write(self, bundle: IndexBundle) -> None:
        self.bundles.append(bundle)


def _block_page(text: str, title: str = "Page") -> str:
    return page_html(f'<div class="sqs-block-content">{text}</div>', title=title)


def _mock_site(pages: dict[str, httpx.Response], extra_locs: tuple[str, ...] = ()) -> None:
    respx.get(SITEMAP_URL).mock(
        return_value=httpx.Response(200, text=sitemap_xml(*pages, *extra_locs))
    )
    for url, response in pages.items():
        respx.get(url).mock(return_value=response)


# ---------------------------------------------------------------------------
# Record helpers
# ---------------------------------------------------------------------------

class TestRecordHelpers:
    def test_year_tag_from_url(self) -> None:
        assert year_from_url(f"{BASE}/1987/some-work", "/jeansellem/") == "1987"
        assert year_from_url(f"{BASE}/1987", "/jeansellem/") == "1987"

    def test_no_year_tag_without_a_19xx_segment(self) -> None:
        assert year_from_url(f"{BASE}/biography", "/jeansellem/") == ""
        assert year_from_url(f"{BASE}/2003/work", "/jeansellem/") == ""
        assert year_from_url(f"{BASE}/19871/work", "/jeansellem/") == ""

    def test_record_id_is_stable_and_section_scoped(self) -> None:
        url = f"{BASE}/1987/some-work"
        assert record_id(url, Section.PAGE) == record_id(url, Section.PAGE)
        assert record_id(url, Section.PAGE).startswith("u:")
        assert record_id(url, Section.PAGE).endswith(":page")
        assert len(record_id(url, Section.PAGE).split(":")[1]) == 10
        assert record_id(url, Section.PAGE) != record_id(url, Section.VIEWER)

    def test_distinct_page_urls_never_collide(self) -> None:
        urls = [f"{BASE}/work-{i}" for i in range(500)]
        ids = {record_id(u, Section.PAGE) for u in urls}
        assert len(ids) == len(urls)

    def test_build_record_tags_and_truncation(self) -> None:
        content = "x" * 17999 + "yz" + "tail"
        record = build_record(
            f"{BASE}/1987/some-work",
            "",
            ExtractionResult(content, Section.POPUP),
            path_prefix="/jeansellem/",
            site_tag="jeansellem",
            max_chars=18000,
        )

        assert record.tags == ["popup", "year:1987", "jeansellem"]
        assert record.section is Section.POPUP
        assert record.title == f"{BASE}/1987/some-work"
        assert len(record.content) == 18000
        assert record.content == "x" * 17999 + "y"

    def test_tags_without_year(self) -> None:
        record = build_record(
            f"{BASE}/about",
            "About",
            ExtractionResult("text", Section.PAGE),
            path_prefix="/jeansellem/",
            site_tag="jeansellem",
            max_chars=18000,
        )
        assert record.tags == ["page", "jeansellem"]

    def test_timestamp_format(self) -> None:
        assert format_timestamp(FIXED_NOW) == "2024-05-01T12:30:45.123Z"

    def test_bundle_is_sorted_with_section_counts(self) -> None:
        def rec(url: str, section: Section) -> IndexRecord:
            return build_record(
                url, "t", ExtractionResult("c", section),
                path_prefix="/jeansellem/", site_tag="jeansellem", max_chars=10,
            )

        records = [rec(f"{BASE}/c", Section.PAGE), rec(f"{BASE}/a", Section.VIEWER), rec(f"{BASE}/b", Section.PAGE)]
        bundle = assemble_bundle(records, make_settings(), FIXED_NOW)

        assert [r.url for r in bundle.records] == [f"{BASE}/a", f"{BASE}/b", f"{BASE}/c"]
        assert bundle.meta.count == 3
        assert bundle.meta.sections == {"viewer": 1, "page": 2}
        assert section_counts(bundle.records) == bundle.meta.sections
        assert bundle.meta.sitemap == SITEMAP_URL


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class TestBuildIndex:
    async def test_one_failure_among_ten_pages(self, tmp_path, caplog) -> None:
        caplog.set_level(logging.WARNING, logger="search_index")
        pages = {
            f"{BASE}/work-{i:02d}": httpx.Response(200, text=_block_page(f"Work number {i}"))
            for i in range(10)
        }
        pages[f"{BASE}/work-04"] = httpx.Response(500, text="boom")
        sink = MemorySink()

        with respx.mock:
            _mock_site(pages)
            bundle = await build_index(make_settings(tmp_path), sink, clock=lambda: FIXED_NOW)

        assert len(bundle.records) == 9
        assert f"{BASE}/work-04" not in {r.url for r in bundle.records}
        skips = [r for r in caplog.records if r.getMessage().startswith("Skip ")]
        assert len(skips) == 1
        assert f"{BASE}/work-04" in skips[0].getMessage()
        assert sink.bundles == [bundle]

    async def test_network_failure_is_skipped(self, tmp_path) -> None:
        with respx.mock:
            respx.get(SITEMAP_URL).mock(
                return_value=httpx.Response(200, text=sitemap_xml(f"{BASE}/a", f"{BASE}/b"))
            )
            respx.get(f"{BASE}/a").mock(side_effect=httpx.ConnectError)
            respx.get(f"{BASE}/b").mock(return_value=httpx.Response(200, text=_block_page("B")))
            bundle = await build_index(make_settings(tmp_path), MemorySink())

        assert [r.url for r in bundle.records] == [f"{BASE}/b"]

    async def test_empty_pages_are_dropped_without_a_skip(self, tmp_path, caplog) -> None:
        caplog.set_level(logging.WARNING, logger="search_index")
        pages = {
            f"{BASE}/empty": httpx.Response(200, text=page_html("<div>nothing indexable</div>")),
            f"{BASE}/full": httpx.Response(200, text=_block_page("Something")),
        }
        with respx.mock:
            _mock_site(pages)
            bundle = await build_index(make_settings(tmp_path), MemorySink())

        assert [r.url for r in bundle.records] == [f"{BASE}/full"]
        assert all(r.content for r in bundle.records)
        assert not [r for r in caplog.records if r.getMessage().startswith("Skip ")]

    async def test_records_are_sorted_and_filtered(self, tmp_path) -> None:
        pages = {
            f"{BASE}/1990/zeta": httpx.Response(200, text=_block_page("Zeta", title="Zeta")),
            f"{BASE}/1987/alpha": httpx.Response(200, text=_block_page("Alpha", title="Alpha")),
            f"{BASE}/mu": httpx.Response(200, text=_block_page("Mu", title="Mu")),
        }
        with respx.mock:
            _mock_site(pages, extra_locs=("https://gallery.test/contact",))
            bundle = await build_index(make_settings(tmp_path, concurrency=2), MemorySink())

        assert [r.url for r in bundle.records] == [
            f"{BASE}/1987/alpha",
            f"{BASE}/1990/zeta",
            f"{BASE}/mu",
        ]
        assert bundle.records[0].tags == ["page", "year:1987", "jeansellem"]
        assert bundle.records[2].tags == ["page", "jeansellem"]
        assert bundle.meta.sections == {"page": 3}

    async def test_page_limit_truncates_after_sorting(self, tmp_path) -> None:
        pages = {f"{BASE}/{name}": httpx.Response(200, text=_block_page(name)) for name in "cab"}
        with respx.mock:
            _mock_site(pages)
            bundle = await build_index(make_settings(tmp_path, page_limit=2), MemorySink())

        assert [r.url for r in bundle.records] == [f"{BASE}/a", f"{BASE}/b"]

    async def test_sitemap_failure_propagates(self, tmp_path) -> None:
        sink = MemorySink()
        with respx.mock:
            respx.get(SITEMAP_URL).mock(return_value=httpx.Response(404))
            with pytest.raises(SitemapError):
                await build_index(make_settings(tmp_path), sink)

        assert sink.bundles == []

    async def test_two_runs_are_byte_identical(self, tmp_path) -> None:
        pages = {
            f"{BASE}/1987/viewer": httpx.Response(
                200,
                text=page_html(
                    '<div class="dvz-indexable-text">Viewer text</div>'
                    '<script class="dv-config" type="application/json">'
                    '{"title": "Carnet", "caption": "Encre"}</script>'
                ),
            ),
            f"{BASE}/popup": httpx.Response(
                200,
                text=page_html(
                    '<p class="jsl-artist">Jean Sellem</p>'
                    '<div class="jsl-popup-content">Body</div>'
                ),
            ),
            f"{BASE}/page": httpx.Response(200, text=_block_page("Éditions")),
        }
        outputs = []
        for run in range(2):
            out_dir = tmp_path / f"run{run}"
            with respx.mock:
                _mock_site(pages)
                await build_index(
                    make_settings(out_dir), FileIndexSink(out_dir), clock=lambda: FIXED_NOW
                )
            outputs.append(
                (
                    (out_dir / "index-jeansellem.js").read_bytes(),
                    (out_dir / "index-meta.json").read_bytes(),
                )
            )

        assert outputs[0] == outputs[1]

    async def test_collect_records_reports_stats(self, tmp_path) -> None:
        urls = [f"{BASE}/ok", f"{BASE}/bad", f"{BASE}/empty"]
        with respx.mock:
            respx.get(f"{BASE}/ok").mock(return_value=httpx.Response(200, text=_block_page("ok text")))
            respx.get(f"{BASE}/bad").mock(return_value=httpx.Response(404))
            respx.get(f"{BASE}/empty").mock(return_value=httpx.Response(200, text="<html></html>"))
            async with httpx.AsyncClient() as client:
                records, stats = await collect_records(client, urls, make_settings(tmp_path))

        assert [r.url for r in records] == [f"{BASE}/ok"]
        assert (stats.total, stats.done, stats.records, stats.skipped, stats.empty) == (3, 3, 1, 1, 1)

    async def test_progress_is_logged_every_n_pages_and_at_the_end(self, tmp_path, caplog) -> None:
        caplog.set_level(logging.INFO, logger="search_index")
        urls = [f"{BASE}/work-{i:02d}" for i in range(45)]
        with respx.mock:
            for url in urls:
                respx.get(url).mock(return_value=httpx.Response(200, text=_block_page(url)))
            async with httpx.AsyncClient() as client:
                await collect_records(client, urls, make_settings(tmp_path, progress_every=20))

        progress = [
            r.getMessage().split(" pages")[0]
            for r in caplog.records
            if r.getMessage().startswith("Progress: ")
        ]
        assert progress == ["Progress: 20/45", "Progress: 40/45", "Progress: 45/45"]

    async def test_empty_url_list_still_reports_final_progress(self, tmp_path, caplog) -> None:
        caplog.set_level(logging.INFO, logger="search_index")
        async with httpx.AsyncClient() as client:
            records, stats = await collect_records(client, [], make_settings(tmp_path))

        assert records == []
        assert (stats.total, stats.done) == (0, 0)
        progress = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Progress: ")]
        assert len(progress) == 1
        assert progress[0].startswith("Progress: 0/0 pages")
