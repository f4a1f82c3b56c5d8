from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

- one tqdm bar over the write chunks of an import
- a one-line indicator per sheet while a workbook is parsed
- nothing at all when stdout is not a TTY (CI, redirected output), so log
  output stays free of control sequences
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
    "SheetProgressIndicator",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress tracker using tqdm for chunked writes.

    In non-TTY environments (CI), progress bars are disabled to avoid
    ANSI control sequence spam.
    """

    def __init__(self, total_chunks: int, *, description: str = "Saving students") -> None:
        self.total_chunks = total_chunks
        self.description = description
        self.current_chunk = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_chunks,
                desc=description,
                unit="chunk",
                disable=False,
                leave=True,
                position=0,
                ncols=80,  # Standard width for consistency
                ascii=True,  # ASCII chars for better compatibility
            )
        else:
            self.pbar = None

    def start_chunk(self, size: int) -> None:
        """Start writing a chunk of ``size`` records."""
        self.current_chunk += 1

        if self.enabled and self.pbar is not None:
            self.pbar.set_description(
                f"{self.description} ({self.current_chunk}/{self.total_chunks}, {size} rows)"
            )

    def finish_chunk(self, success: bool = True) -> None:
        if self.enabled and self.pbar is not None:
            if success:
                self.pbar.update(1)
            self.pbar.set_description(self.description)

    def set_postfix(self, **kwargs: Any) -> None:
        """Set postfix information (stats) on the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        """Close the progress bar."""
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class SheetProgressIndicator:
    """Simple sheet progress indicator while a workbook is parsed.

    Sheet parsing is fast, so a printed line per sheet is enough.
    """

    def __init__(self, file_name: str, total_sheets: int) -> None:
        self.file_name = file_name
        self.total_sheets = total_sheets
        self.current_sheet = 0
        self.enabled = is_tty_enabled()

    def start_sheet(self, sheet_name: str) -> None:
        self.current_sheet += 1

        if self.enabled:
            progress_str = f"  Sheet {self.current_sheet}/{self.total_sheets}: {sheet_name}"
            print(progress_str, end="", flush=True)

    def finish_sheet(self, records: int = 0, skipped: int = 0) -> None:
        if self.enabled:
            status = "✓" if skipped == 0 else f"✗ {skipped} skipped"
            if records > 0:
                print(f" - {records} students {status}")
            else:
                print(f" {status}")
