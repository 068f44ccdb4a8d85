"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/store.py
Append-only CSV journal of FileRecords with a read/write lock.

Features:
- One record per line: path, size, lastModified, digestA, digestB
- Writes are buffered; load_all() flushes before reading the whole log back
- A malformed line is logged and skipped, an unreadable log degrades to an empty cache
- close() is idempotent so shutdown paths can call it unconditionally
"""

import csv
import logging
import os
import threading
from contextlib import contextmanager
from typing import List, Optional

from symdedup.core.interfaces import MetadataStore
from symdedup.core.models import FileRecord

logger = logging.getLogger(__name__)

FIELD_COUNT = 5


class ReadWriteLock:
    """
    Writer-preferring read/write lock.

    The write side is reentrant for the owning thread, and the owner may take the
    read side while holding the write side, which allows downgrading:
    acquire_write() -> acquire_read() -> release_write().
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer: Optional[int] = None
        self._write_depth = 0
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            while self._writer != me and (self._writer is not None or self._waiting_writers):
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._write_depth += 1
                return
            self._waiting_writers += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = me
            self._write_depth = 1

    def release_write(self) -> None:
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("Write lock released by a thread that does not own it")
            self._write_depth -= 1
            if self._write_depth == 0:
                self._writer = None
                self._cond.notify_all()

    @contextmanager
    def read_locked(self):
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write_locked(self):
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class CsvMetadataStore(MetadataStore):
    """
    Thread-safe, durable metadata journal keyed by path.

    The store never de-duplicates: callers must not append a path that is
    already present in the current load.
    """

    def __init__(self, path: str):
        self.path = os.path.abspath(path)
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        self._lock = ReadWriteLock()
        self._file = open(self.path, "a", newline="", encoding="utf-8", errors="surrogateescape")
        self._writer = csv.writer(self._file, lineterminator="\n")
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def append(self, record: FileRecord) -> None:
        row = [os.path.abspath(record.path), record.size, record.last_modified, record.digest_a, record.digest_b]
        with self._lock.write_locked():
            if self._closed:
                logger.error(f"Insert of {record.path} dropped: store {self.path} is closed")
                return
            try:
                self._writer.writerow(row)
            except OSError as e:
                logger.error(f"Insert failed for {record.path}: {e}")

    def load_all(self) -> List[FileRecord]:
        """
        Flush pending writes and read every record from the start of the log.
        Returns an empty list if the log cannot be read.
        """
        with self._lock.write_locked():
            self._flush_buffer()
            # Downgrade: take the read side before giving up the write side
            self._lock.acquire_read()
        try:
            return self._read_records()
        finally:
            self._lock.release_read()

    def flush(self) -> None:
        with self._lock.write_locked():
            self._flush_buffer()

    def close(self) -> None:
        with self._lock.write_locked():
            if self._closed:
                return
            try:
                self._flush_buffer()
                self._file.close()
            except OSError as e:
                logger.error(f"Close failed for {self.path}: {e}")
            finally:
                self._closed = True
        logger.debug(f"Metadata store {self.path} closed")

    def _flush_buffer(self) -> None:
        """Caller must hold the write lock."""
        if self._closed:
            return
        try:
            self._file.flush()
            os.fsync(self._file.fileno())
        except OSError as e:
            logger.error(f"Flush failed for {self.path}: {e}")

    def _read_records(self) -> List[FileRecord]:
        records = []
        try:
            with open(self.path, "r", newline="", encoding="utf-8", errors="surrogateescape") as f:
                reader = csv.reader(f)
                while True:
                    try:
                        row = next(reader)
                    except StopIteration:
                        break
                    except csv.Error as e:
                        logger.warning(f"Skipping unreadable line {reader.line_num} in {self.path}: {e}")
                        continue

                    if not row:
                        continue
                    try:
                        records.append(self._from_row(row))
                    except ValueError as e:
                        logger.warning(f"Skipping malformed line {reader.line_num} in {self.path}: {e}")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"{self.path} could not be read: {e}")
            return []

        logger.debug(f"Loaded {len(records)} records from {self.path}")
        return records

    @staticmethod
    def _from_row(row: List[str]) -> FileRecord:
        if len(row) != FIELD_COUNT:
            raise ValueError(f"expected {FIELD_COUNT} fields, got {len(row)}")
        path, size, last_modified, digest_a, digest_b = row
        return FileRecord(
            path=path,
            size=int(size),
            last_modified=int(last_modified),
            digest_a=digest_a,
            digest_b=digest_b,
        )

    def __enter__(self) -> "CsvMetadataStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self):
        return f"<CsvMetadataStore path={self.path}>"
