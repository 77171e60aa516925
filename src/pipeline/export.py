"""CSV export of extracted jobs as a scoped temporary file.

Lifecycle per request: create → write all records → stream → delete.
The file is deleted exactly once on every exit path.
"""

import csv
import logging
import tempfile
import time
from collections.abc import AsyncIterator, Iterable
from pathlib import Path

import anyio

from src.core.errors import ExportIOError
from src.core.schemas import CSV_HEADER, JobRecord

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class CsvExport:
    """A written CSV file waiting to be streamed and released."""

    def __init__(self, path: Path, record_count: int) -> None:
        self.path = path
        self.record_count = record_count
        self._released = False

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Delete the backing file. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            logger.error("Failed to delete CSV file %s", self.path, exc_info=True)
            return
        logger.info("CSV file %s sent and deleted", self.filename)

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    async def iter_bytes(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Stream the file, releasing it however the stream ends.

        Headers are already committed when this runs, so read errors can only
        be logged and end the stream early.
        """
        try:
            async with await anyio.open_file(self.path, "rb") as f:
                while chunk := await f.read(chunk_size):
                    yield chunk
        except OSError as e:
            logger.error("CSV stream for %s failed: %s", self.filename, e)
        finally:
            self.release()


def make_filename(portal: str, timestamp_ms: int | None = None) -> str:
    """Return ``jobs_<portal>_<unix-ms>.csv``."""
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    return f"jobs_{portal}_{timestamp_ms}.csv"


def _create_exclusive(directory: Path, portal: str) -> Path:
    """Create an empty, uniquely named CSV file in ``directory``.

    Concurrent requests may share a millisecond; on collision the stamp is
    bumped until an unused name is found.
    """
    stamp = time.time_ns() // 1_000_000
    while True:
        path = directory / make_filename(portal, stamp)
        try:
            path.open("x").close()
        except FileExistsError:
            stamp += 1
            continue
        return path


def write_csv(path: Path, records: Iterable[JobRecord]) -> int:
    """Write header plus one row per record. Returns the record count."""
    count = 0
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for record in records:
            writer.writerow(record.to_row())
            count += 1
    return count


def export_to_csv(
    records: Iterable[JobRecord],
    portal: str,
    tmp_dir: str | Path | None = None,
) -> CsvExport:
    """Write ``records`` to a fresh temporary CSV file.

    Zero records produces a header-only file.

    Raises:
        ExportIOError: If the file cannot be created or written, including
            values utf-8 cannot encode. Nothing is left behind on disk in
            that case, whatever the error.
    """
    directory = Path(tmp_dir) if tmp_dir is not None else Path(tempfile.gettempdir())
    try:
        path = _create_exclusive(directory, portal)
    except OSError as e:
        msg = "Failed to create CSV export"
        raise ExportIOError(msg, str(e)) from e

    try:
        count = write_csv(path, records)
    except (OSError, ValueError) as e:
        path.unlink(missing_ok=True)
        msg = "Failed to write CSV export"
        raise ExportIOError(msg, str(e)) from e
    except BaseException:
        path.unlink(missing_ok=True)
        raise

    logger.info("Wrote %d jobs to %s", count, path)
    return CsvExport(path, count)
