"""Index sinks: where a finished :class:`IndexBundle` ends up.

The builder only depends on the :class:`IndexSink` protocol.
:class:`FileIndexSink` writes the two static files the front-end search widget
loads: a JS payload assigning the record array to a global, and a JSON
metadata document.  Both are fully overwritten on every build.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from search_index.index.records import IndexBundle

logger = logging.getLogger(__name__)


class IndexSink(Protocol):
    """Protocol for index sinks."""

    def write(self, bundle: IndexBundle) -> None: ...


def render_index_js(bundle: IndexBundle, global_name: str) -> str:
    """Render the JS payload: a banner comment, then ``<global> = [...];``."""
    records = [record.model_dump(mode="json") for record in bundle.records]
    payload = json.dumps(records, ensure_ascii=False, separators=(",", ":"))
    return (
        "/* AUTO-GENERATED — DO NOT EDIT\n"
        f"   Source: {bundle.meta.sitemap}\n"
        f"   Built: {bundle.meta.built_at}\n"
        "*/\n"
        f"{global_name} = {payload};\n"
    )


def render_meta_json(bundle: IndexBundle) -> str:
    return json.dumps(bundle.meta.model_dump(mode="json"), ensure_ascii=False, indent=2)


class FileIndexSink:
    """Writes the bundle to ``<out_dir>/<index_filename>`` and ``<out_dir>/<meta_filename>``."""

    def __init__(
        self,
        out_dir: Path,
        index_filename: str = "index-jeansellem.js",
        meta_filename: str = "index-meta.json",
        global_name: str = "window.__RLL_INDEX__",
    ) -> None:
        self.out_dir = Path(out_dir)
        self.index_path = self.out_dir / index_filename
        self.meta_path = self.out_dir / meta_filename
        self.global_name = global_name

    def write(self, bundle: IndexBundle) -> None:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        self.index_path.write_text(render_index_js(bundle, self.global_name), encoding="utf-8")
        self.meta_path.write_text(render_meta_json(bundle), encoding="utf-8")
        logger.info("Wrote: %s (%d records)", self.index_path, len(bundle.records))
