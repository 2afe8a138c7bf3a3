from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .config import ENV_DOWNLOADS, ENV_DWELL, load_config, parse_seconds
from .download import fetch_file
from .errors import ConfigError

logger = logging.getLogger("figfetch")

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="figfetch",
        description="Log in to Figma and save a local copy of one file. "
        "Credentials and the file URL come from FIGMA_EMAIL, FIGMA_PASSWORD and TEST_FILE_URL.",
    )
    p.add_argument("--env-file", help="Read variables from this .env file (default: ./.env if present).")
    p.add_argument("--output-dir", help=f"Folder to save the file into (overrides {ENV_DOWNLOADS}; default: downloads).")
    p.add_argument("--headed", action="store_true", help="Show the browser window (debugging).")
    p.add_argument("--dwell", metavar="SECONDS", help=f"Pause after the file loads (overrides {ENV_DWELL}; default: 10).")
    p.add_argument("--trace", action="store_true", help="Record a Playwright trace.zip next to the download.")
    p.add_argument("--log-file", help="Also write the log to this file.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        config = load_config(
            env_file=args.env_file,
            output_dir=args.output_dir,
            dwell_seconds=parse_seconds("--dwell", args.dwell) if args.dwell is not None else None,
            headless=False if args.headed else None,
            trace=args.trace or None,
        )
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    try:
        path = fetch_file(config)
    except Exception as e:  # noqa: BLE001
        logger.error("Download failed: %s", e)
        if config.screenshot_path.exists():
            logger.error("See %s", config.screenshot_path)
        return 1
    print(path)
    return 0
