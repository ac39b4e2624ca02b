"""
Colored console output for operator-facing lines, plus stdlib logging setup.
"""

import logging
from datetime import datetime, timezone


def _ts():
    return datetime.now(timezone.utc).strftime("%H:%M:%S")


def log_info(msg: str):
    print(f"\033[94m[{_ts()}][INFO]\033[0m {msg}")


def log_ok(msg: str):
    print(f"\033[92m[{_ts()}][OK]\033[0m {msg}")


def log_warn(msg: str):
    print(f"\033[93m[{_ts()}][WARN]\033[0m {msg}")


def log_error(msg: str):
    print(f"\033[91m[{_ts()}][ERROR]\033[0m {msg}")


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
