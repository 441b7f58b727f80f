import re


class ParseError(ValueError):
    pass


_FORMAT_BYTE_SUFFIXES = (" bytes", "K", "M", "G", "T")
def format_byte_count(byte_count, float_precision=1):
    #pylint: disable=undefined-loop-variable
    for suffix in _FORMAT_BYTE_SUFFIXES:
        if byte_count < 1024:
            break
        byte_count /= 1024

    if byte_count == int(byte_count):
        float_precision = 0

    return "{value:.{prec}f}{suffix}".format(
        value=byte_count, prec=float_precision, suffix=suffix
    )


_PARSE_BYTE_SUFFIXES = {
    "b": 1,
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
    "t": 1024**4,
}

_BYTE_COUNT_REGEX = re.compile(
    r"""^
    (?:
        0x (?P<hex> [0-9a-f]+ ) |
        (?P<dec> [0-9]+ )
    )
    \s*
    (?P<suffix> [{suffixes}]? )
    $""".format(suffixes="".join(_PARSE_BYTE_SUFFIXES.keys())),
    re.IGNORECASE | re.VERBOSE
)

def parse_byte_count(string):
    """Parse a byte count such as '4096', '0x1000', '512K' or '1 M'."""
    match = _BYTE_COUNT_REGEX.match(string.strip())

    if match is None:
        raise ParseError(string)

    if match.group("hex"):
        value = int(match.group("hex"), 16)
    else:
        value = int(match.group("dec"), 10)

    if match.group("suffix"):
        value *= _PARSE_BYTE_SUFFIXES[match.group("suffix").lower()]

    return value


_COUNT_REGEX = re.compile(r"[0-9]+\Z")

def parse_count(string):
    """Parse a non-negative decimal integer, as taken by --limit and --jobs."""
    match = _COUNT_REGEX.match(string.strip())
    if match is None:
        raise ParseError(string)
    return int(match.group(0), 10)


def format_duration(seconds, seconds_precision=0):
    floor_mins, mod_secs = divmod(seconds, 60)
    floor_hrs,  mod_mins = divmod(floor_mins, 60)

    parts = [ ]

    if seconds >= 3600:
        parts.append((floor_hrs, 0, "h"))

    if seconds >= 60:
        parts.append((mod_mins, 0, "m"))

    parts.append((mod_secs, seconds_precision, "s"))

    return " ".join(
        "{value:.{prec}f}{suffix}".format(value=v, prec=p, suffix=s)
        for v, p, s in parts
    )
