"""CSV Tokenizer: turns an uploaded file into a header plus a lazy row stream.

Quoting follows RFC 4180 via the stdlib csv reader: quoted fields may hold
commas, doubled quotes and line breaks. Rows are yielded one at a time so
memory stays flat regardless of file size.
"""
import csv
import io
import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from app.core.exceptions import InvalidFileError

logger = logging.getLogger(__name__)

COLUMN_COUNT_MISMATCH = "column count mismatch"

CSVSource = bytes | BinaryIO | str | os.PathLike


@dataclass
class RawRow:
    index: int  # 1-based ordinal among data rows (header and blank lines excluded)
    line: int  # source line on which the record ended
    fields: list[str]
    error: str | None = None


class TokenizedCSV:
    """Header plus a single-pass iterator over the data rows."""

    def __init__(self, header: list[str], reader, stream: BinaryIO, size: int | None):
        self.header = header
        self._reader = reader
        self._stream = stream
        self._size = size
        self.rows: Iterator[RawRow] = self._iter_rows()

    def fraction_read(self) -> float | None:
        """Approximate share of the file consumed so far, if the size is known."""
        if not self._size:
            return None
        try:
            return min(self._stream.tell() / self._size, 1.0)
        except (OSError, ValueError):
            return None

    def _iter_rows(self) -> Iterator[RawRow]:
        expected = len(self.header)
        index = 0
        while True:
            fields = _next_record(self._reader)
            if fields is None:
                return
            if _is_blank(fields):
                continue
            index += 1
            error = COLUMN_COUNT_MISMATCH if len(fields) != expected else None
            yield RawRow(index=index, line=self._reader.line_num, fields=fields, error=error)


def _next_record(reader) -> list[str] | None:
    try:
        return next(reader)
    except StopIteration:
        return None
    except UnicodeDecodeError as exc:
        raise InvalidFileError(
            "File is not valid UTF-8 text",
            {"position": exc.start},
        )
    except csv.Error as exc:
        raise InvalidFileError(
            f"Malformed CSV near line {reader.line_num}: {exc}",
            {"line": reader.line_num},
        )


def _is_blank(fields: list[str]) -> bool:
    return all(not f.strip() for f in fields)


def _read_header(reader) -> list[str]:
    while True:
        fields = _next_record(reader)
        if fields is None:
            raise InvalidFileError("CSV file is empty or has no header row")
        if not _is_blank(fields):
            break

    header = [f.strip() for f in fields]
    if any(not name for name in header):
        raise InvalidFileError("Header row contains blank column names", {"header": header})

    seen: set[str] = set()
    duplicates = []
    for name in header:
        key = name.lower()
        if key in seen:
            duplicates.append(name)
        seen.add(key)
    if duplicates:
        raise InvalidFileError(
            f"Duplicate columns in header: {', '.join(duplicates)}",
            {"duplicates": duplicates},
        )
    return header


def _stream_size(stream: BinaryIO) -> int | None:
    try:
        if not stream.seekable():
            return None
        position = stream.tell()
        size = stream.seek(0, io.SEEK_END)
        stream.seek(position)
        return size - position
    except (OSError, ValueError, AttributeError):
        return None


@contextmanager
def tokenize(source: CSVSource) -> Iterator[TokenizedCSV]:
    """Open *source* and yield a TokenizedCSV.

    Paths and raw bytes are opened here and closed on exit. A caller-supplied
    binary stream is left open; only our text wrapper is detached from it.
    """
    owned = True
    if isinstance(source, (bytes, bytearray)):
        stream: BinaryIO = io.BytesIO(source)
    elif isinstance(source, (str, os.PathLike)):
        try:
            stream = open(source, "rb")
        except OSError as exc:
            raise InvalidFileError(f"Cannot open file: {exc}")
    else:
        stream = source
        owned = False

    text: io.TextIOWrapper | None = None
    try:
        size = _stream_size(stream)
        text = io.TextIOWrapper(stream, encoding="utf-8-sig", newline="")
        reader = csv.reader(text, strict=True)
        header = _read_header(reader)
        logger.debug("Tokenized CSV header: %s", header)
        yield TokenizedCSV(header, reader, stream, size)
    finally:
        if text is None:
            if owned:
                stream.close()
        elif owned:
            text.close()
        else:
            text.detach()
