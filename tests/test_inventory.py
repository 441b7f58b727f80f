import pytest

from dupestash.core import FileRecord
from dupestash.inventory import (
    ParseError,
    format_record,
    is_representable,
    parse_line,
    read_records,
)


HASH = "0123456789abcdef" * 4


def test_hash_first_record():
    assert parse_line("%s\t/music/a.mp3\n" % HASH) == FileRecord(HASH, "/music/a.mp3")


def test_path_first_record():
    assert parse_line("/music/a.mp3\t%s\n" % HASH) == FileRecord(HASH, "/music/a.mp3")


def test_crlf_line_endings_are_stripped():
    assert parse_line("%s\t/music/a.mp3\r\n" % HASH).path == "/music/a.mp3"


def test_spaces_in_path_are_kept():
    assert parse_line("%s\t/music/song (1) .mp3 \n" % HASH).path == "/music/song (1) .mp3 "


def test_blank_and_comment_lines():
    assert parse_line("\n") is None
    assert parse_line("# written by dupestash\n") is None


@pytest.mark.parametrize("line", [
    "%s\t/music/a.mp3" % HASH.upper(),
    "%s\t/music/a.mp3" % HASH[:-1],
    "%s0\t/music/a.mp3" % HASH,
    "%s /music/a.mp3" % HASH,
    "/music/a.mp3",
    "%s\t" % HASH,
])
def test_malformed_records(line):
    with pytest.raises(ParseError):
        parse_line(line, 7)


def test_parse_error_carries_line_number():
    with pytest.raises(ParseError) as excinfo:
        parse_line("nonsense", 12)
    assert excinfo.value.line_num == 12
    assert str(excinfo.value).startswith("line 12:")


def test_read_records_reports_and_skips_bad_lines():
    errors = [ ]
    lines = [
        "%s\t/music/a.mp3\n" % HASH,
        "garbage\n",
        "\n",
        "/music/b.mp3\t%s\n" % HASH,
        "%s\t\n" % HASH,
    ]
    records = list(read_records(lines, errors.append))

    assert [ r.path for r in records ] == [ "/music/a.mp3", "/music/b.mp3" ]
    assert [ e.line_num for e in errors ] == [ 2, 5 ]


def test_read_records_raises_without_handler():
    with pytest.raises(ParseError):
        list(read_records([ "garbage\n" ]))


def test_format_record():
    record = FileRecord(HASH, "/music/a.mp3")
    assert format_record(record) == "/music/a.mp3\t" + HASH
    assert format_record(record, hash_first=True) == HASH + "\t/music/a.mp3"


def test_formatted_records_parse_back():
    record = FileRecord(HASH, "/music/Artist/01 - Track.flac")
    assert parse_line(format_record(record)) == record
    assert parse_line(format_record(record, hash_first=True)) == record


def test_is_representable():
    assert is_representable("/music/a b.mp3")
    assert not is_representable("/music/a\tb.mp3")
    assert not is_representable("/music/a\nb.mp3")
