from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display for dataset export (tqdm, TTY only).

One bar per export run, advanced once per dataset. In non-TTY environments
(CI, piped output) the bar is disabled entirely so log lines stay clean.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress tracker over the datasets of one export."""

    def __init__(self, total: int, *, description: str = "Exporting datasets") -> None:
        self.total = total
        self.description = description
        self.current = 0
        self.exported = 0
        self.skipped = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit="dataset",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start_dataset(self, name: str) -> None:
        self.current += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({name})")

    def finish_dataset(self, exported: bool = True) -> None:
        """Advance the bar by one dataset and count it as exported or skipped."""
        if exported:
            self.exported += 1
        else:
            self.skipped += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)
            self.pbar.set_postfix(exported=self.exported, skipped=self.skipped)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
