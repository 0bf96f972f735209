"""Record assembly and index output."""

from search_index.index.assembler import build_index, collect_records, process_url
from search_index.index.records import IndexBundle, IndexMeta, IndexRecord
from search_index.index.sink import FileIndexSink, IndexSink

__all__ = [
    "build_index",
    "collect_records",
    "process_url",
    "IndexBundle",
    "IndexMeta",
    "IndexRecord",
    "FileIndexSink",
    "IndexSink",
]
