import logging
import os
import sys

from .config import load_settings
from .errors import FatalStreamError
from .session import decode_demo

APP_NAME = "demo_parser"

log = logging.getLogger(APP_NAME)


def setup_logging(settings) -> None:
    logging.basicConfig(
        filename=settings.log_file,
        format='[%(asctime)s] %(levelname)s %(name)s: %(message)s',
        level=settings.log_level,
    )


def get_demo_path(argv):
    if len(argv) != 1:
        print(f"Usage: {APP_NAME} <input_demo_file>")
        return None
    demo_path = argv[0]
    if not os.path.exists(demo_path):
        print(f"Error: File '{demo_path}' not found.")
        return None
    return demo_path


def main(argv=None) -> int:
    demo_path = get_demo_path(sys.argv[1:] if argv is None else argv)
    if demo_path is None:
        return 1

    try:
        settings = load_settings()
        setup_logging(settings)
    except ValueError as e:
        print(f"Error: invalid configuration: {e}")
        return 1

    try:
        with open(demo_path, "rb") as f:
            data = f.read()
    except OSError as e:
        log.error(f"Failed to read demo file: {e}")
        return 1

    try:
        summary = decode_demo(data, settings=settings, logger=log)
    except FatalStreamError as e:
        log.error(f"{e}. Terminating process")
        return 1

    log.info(
        f"Done: {summary.records} records, {summary.decoded} decoded, "
        f"{summary.errors} skipped, {summary.position} / {summary.data_size} bytes")
    return 0


if __name__ == "__main__":
    sys.exit(main())
