#!/usr/bin/env python3
"""Run the SES bulk sender on stdin.

This process reads `K,F1,F2,F3,F4` records from stdin and sends one bulk
templated email per request kind after every completed line. It is meant to
sit behind a producer pipe (`listener | run_ses_sender.py`); end of input is
treated as a failure.

Set `MF_DEBUG=true` to print requests instead of calling SES. Addresses in
`MF_SES_REPLY_TO` are only attached to password recovery mails.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

# Allow running this file directly from repository root.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from bulkmail.adapters.stdin_runtime import configure_logging, run_sender_forever  # noqa: E402


def main() -> int:
    args = parse_args()
    _load_env_file(args.env_file)
    if args.debug:
        os.environ["MF_DEBUG"] = "true"
    configure_logging(args.log_level)
    return run_sender_forever()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Read notification records from stdin and send them through SES."
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=REPO_ROOT / ".env",
        help="Optional KEY=VALUE file loaded before reading the environment.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print bulk requests instead of sending them (same as MF_DEBUG=true).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level. Default: MF_LOG_LEVEL or INFO.",
    )
    return parser.parse_args()


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text or text.startswith("#") or "=" not in text:
            continue
        key, value = text.split("=", 1)
        key = key.strip()
        value = value.strip()
        if not key:
            continue
        if value.startswith(("'", '"')) and value.endswith(("'", '"')) and len(value) >= 2:
            value = value[1:-1]
        os.environ.setdefault(key, value)


if __name__ == "__main__":
    sys.exit(main())
