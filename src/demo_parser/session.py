import logging
from dataclasses import dataclass
from typing import Optional

from .commands import DEM_STOP
from .config import Settings
from .dispatcher import RecordDispatcher
from .errors import DecodeError
from .stream import DemoStreamParser


@dataclass
class SessionSummary:
    data_size: int
    records: int = 0
    decoded: int = 0
    errors: int = 0
    stopped: bool = False
    position: int = 0


def decode_demo(
    data,
    settings: Optional[Settings] = None,
    dispatcher: Optional[RecordDispatcher] = None,
    logger: Optional[logging.Logger] = None,
) -> SessionSummary:
    """
    Decode every record of an in-memory demo, best effort.

    A bad record is logged and skipped. FatalStreamError (bad header, failed
    buffer allocation) propagates to the caller.
    """
    log = logger or logging.getLogger(__name__)
    settings = settings or Settings()
    dispatcher = dispatcher or RecordDispatcher(logger=log)

    summary = SessionSummary(data_size=len(data))

    with DemoStreamParser(
        data,
        min_buffer_size=settings.min_buffer_bytes,
        strict_magic=settings.strict_magic,
        logger=log,
    ) as parser:
        header = parser.header
        log.debug(f"Magic:          {header.magic!r}")
        log.debug(f"Summary offset: {header.summary_offset}")
        log.debug(f"Packet offset:  {header.packet_offset}")

        while True:
            try:
                record = parser.next_record()
            except DecodeError as e:
                summary.errors += 1
                log.error(f"Skipping record: {e}")
                continue
            finally:
                log.debug(f"== {parser.pos} / {parser.data_size} ({parser.progress():f}%) ==")

            if record is None:
                break

            summary.records += 1
            log.info(f"Packet parsed. Type: {record.name} ({record.kind})")
            if record.kind == DEM_STOP:
                log.info("Reached STOP message")
                summary.stopped = True
                break

            try:
                if dispatcher.handle(record) is not None:
                    summary.decoded += 1
            except DecodeError as e:
                summary.errors += 1
                log.error(f"Failed to decode {record.name} at tick {record.tick}: {e}")

        summary.position = parser.pos

    return summary
