"""
Reading and writing hash inventories.

An inventory is a text stream with one record per line: a SHA-256 digest as
64 lowercase hex characters and a path, separated by a tab. Either field may
come first. `dupestash --inventory` writes PATH<TAB>HASH by default; the
original shell tooling, and `--hash-first`, write HASH<TAB>PATH. Blank lines
and lines starting with '#' are ignored.

Paths are assumed not to contain tabs or newlines.
"""

import re

from dupestash.core import FileRecord


__all__ = (
    "ParseError",
    "parse_line",
    "read_records",
    "format_record",
)


HASH_PATTERN = re.compile(r"[0-9a-f]{64}\Z")
FIELD_SEPARATOR = "\t"


class ParseError(ValueError):
    def __init__(self, message, line_num=None):
        super().__init__(message, line_num)
        self.message = message
        self.line_num = line_num

    def __str__(self):
        if self.line_num is None:
            return self.message
        return "line %d: %s" % (self.line_num, self.message)


def is_valid_hash(string):
    return HASH_PATTERN.match(string) is not None


def parse_line(line, line_num=None):
    """Parse one inventory line.

    Returns:
        a FileRecord, or None for blank and comment lines.

    Raises:
        ParseError: if neither the first nor the last field is a valid hash,
            or the path is empty.
    """
    line = line.rstrip("\r\n")
    if line == "" or line.startswith("#"):
        return None

    if FIELD_SEPARATOR not in line:
        raise ParseError("expected HASH<TAB>PATH", line_num)

    first, _, rest = line.partition(FIELD_SEPARATOR)
    if is_valid_hash(first):
        content_hash, path = first, rest
    else:
        head, _, last = line.rpartition(FIELD_SEPARATOR)
        if not is_valid_hash(last):
            raise ParseError("no field is a 64 character lowercase hex hash", line_num)
        content_hash, path = last, head

    if path == "":
        raise ParseError("empty path", line_num)

    return FileRecord(content_hash, path)


def read_records(line_iter, on_error=None):
    """Parse an inventory stream.

    Args:
        line_iter (iter of str): the inventory, one record per item.
        on_error (func or None): called with each ParseError. Parsing then
            continues with the next line. If None, the error propagates.

    Yields:
        a FileRecord for every valid record.
    """
    for line_num, line in enumerate(line_iter, 1):
        try:
            record = parse_line(line, line_num)
        except ParseError as parse_error:
            if on_error is None:
                raise
            on_error(parse_error)
            continue

        if record is not None:
            yield record


def format_record(record, hash_first=False):
    if hash_first:
        return "%s%s%s" % (record.content_hash, FIELD_SEPARATOR, record.path)
    return "%s%s%s" % (record.path, FIELD_SEPARATOR, record.content_hash)


def is_representable(path):
    """False if `path` would corrupt the line format."""
    return FIELD_SEPARATOR not in path and "\n" not in path and "\r" not in path
