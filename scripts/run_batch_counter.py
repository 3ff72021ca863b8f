#!/usr/bin/env python3
"""Count decoded records per batch instead of sending them.

Useful for checking a producer's output format: every completed line prints
`Batch <n> has <count> items.` for each non-empty batch. Exits 0 at end of
input and 1 on the first malformed record.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from bulkmail.adapters.stdin_runtime import configure_logging, run_batch_counter  # noqa: E402


def main() -> int:
    configure_logging()
    return run_batch_counter()


if __name__ == "__main__":
    sys.exit(main())
