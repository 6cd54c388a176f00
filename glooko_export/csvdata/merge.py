from __future__ import annotations

from collections.abc import Sequence

from ..models.dataset import MergedDataset

"""Merging of dataset shards.

Large Glooko exports split one dataset over several files
(cgm_data_1.csv, cgm_data_2.csv, ...). Merging keeps the first shard
verbatim and appends the non-blank data rows (lines 3+) of every later
shard in shard order. Rows are never re-sorted.
"""

__all__ = [
    "merge_csv_contents",
]


def merge_csv_contents(contents: Sequence[str], name: str = "") -> str:
    """Merge shard texts into one text blob.

    [] -> "", [x] -> x (the same object), otherwise shard-major concatenation
    with metadata and header taken from the first shard.
    """
    if not contents:
        return ""
    if len(contents) == 1:
        return contents[0]
    merged = MergedDataset(name=name)
    for content in contents:
        merged.append_shard(content)
    return merged.freeze()
