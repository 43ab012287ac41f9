"""Candidate transaction sources and record parsing."""

from __future__ import annotations

import csv
import logging
import re
from collections.abc import Iterable, Iterator
from pathlib import Path

from pydantic import ValidationError

from blockfill.exceptions import InvalidTransactionError, MalformedRecordError, SourceError
from blockfill.selector.models import Transaction

logger = logging.getLogger("blockfill.source")

RECORD_FIELDS = 3  # id, size, fee

_INT_RE = re.compile(r"[+-]?[0-9]+")


def _to_int(text: str) -> int:
    """Parse an integer field; unparseable text reads as 0 and fails validation."""
    text = text.strip()
    if not _INT_RE.fullmatch(text):
        return 0
    return int(text)


def parse_record(record: list[str], capacity: int) -> Transaction:
    """Build a validated Transaction from an ``[id, size, fee]`` record.

    Raises:
        MalformedRecordError: the record does not have exactly three fields.
        InvalidTransactionError: size or fee is not positive, or size exceeds
            the capacity.
    """
    if len(record) != RECORD_FIELDS:
        raise MalformedRecordError(
            f"expected {RECORD_FIELDS} fields, got {len(record)}: {record!r}"
        )

    tx_id, raw_size, raw_fee = record
    size = _to_int(raw_size)
    fee = _to_int(raw_fee)

    try:
        tx = Transaction(id=tx_id, size=size, fee=fee)
    except ValidationError as e:
        raise InvalidTransactionError(
            f"transaction {tx_id!r}: size={raw_size!r} fee={raw_fee!r} must both be "
            f"positive integers"
        ) from e

    if tx.size > capacity:
        raise InvalidTransactionError(
            f"transaction {tx_id!r}: size {tx.size} exceeds capacity {capacity}"
        )
    return tx


def iter_records(
    lines: Iterable[str],
    delimiter: str = ",",
    has_header: bool = True,
) -> Iterator[list[str]]:
    """Lazily yield raw records from delimited text lines.

    Blank lines are skipped. When ``has_header`` is set the first record is a
    header: it must have three fields like any other record and is then
    dropped. A record with the wrong number of fields, or text the csv module
    cannot parse, stops the iteration with MalformedRecordError.
    """
    reader = csv.reader(lines, delimiter=delimiter)
    header_pending = has_header
    while True:
        try:
            record = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            raise MalformedRecordError(str(e), line=reader.line_num) from e

        if not record:
            continue
        if len(record) != RECORD_FIELDS:
            raise MalformedRecordError(
                f"expected {RECORD_FIELDS} fields, got {len(record)}",
                line=reader.line_num,
            )
        if header_pending:
            header_pending = False
            continue
        yield record


class CandidateSource:
    """Raw transaction records from a delimited file.

    Each call to ``iter()`` reopens the file, so one source can drive
    several runs. Bytes that are not valid UTF-8 are kept as backslash
    escapes (byte 0xE9 reads as ``\\xe9``), so such ids still pass through.
    """

    def __init__(self, path: Path | str, delimiter: str = ",", has_header: bool = True) -> None:
        self.path = Path(path)
        self.delimiter = delimiter
        self.has_header = has_header

    def __iter__(self) -> Iterator[list[str]]:
        try:
            handle = self.path.open(newline="", encoding="utf-8", errors="backslashreplace")
        except OSError as e:
            raise SourceError(f"Cannot read {self.path}: {e}") from e

        logger.info(f"Reading candidates from {self.path}")
        with handle:
            yield from iter_records(handle, self.delimiter, self.has_header)
