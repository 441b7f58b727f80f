import argparse
import codecs
import sys

from dupestash import (
    __version__,
    log,
    units,
)


def byte_count_arg(string):
    try:
        return units.parse_byte_count(string)
    except units.ParseError:
        raise argparse.ArgumentTypeError("invalid byte count: %r" % string)


def count_arg(string):
    try:
        return units.parse_count(string)
    except units.ParseError:
        raise argparse.ArgumentTypeError("invalid count: %r" % string)


def add_common_cli_args(arg_parser):
    arg_parser.add_argument("-v", "--verbose",
        action="count",
        default=0,
        help="""Log more detail to STDERR. Repeat for debugging output."""
    )

    arg_parser.add_argument("-q", "--quiet",
        action="count",
        default=0,
        help="""Log less to STDERR. Once hides informational messages, twice
                hides warnings."""
    )

    arg_parser.add_argument("--version",
        action="version",
        version="%(prog)s " + __version__
    )


def create_logger(args, stream=None):
    return log.StreamLogger(
        stream = stream or sys.stderr,
        min_level = log.select_level(
            log.VERBOSITY_LEVELS,
            log.INFO,
            args.verbose - args.quiet,
        ),
    )


def set_encoder_errors(stream, errors):
    if hasattr(stream, "reconfigure"):
        stream.reconfigure(errors=errors)
        return stream
    if not hasattr(stream, "buffer"):
        return stream
    encoder = codecs.getwriter(stream.encoding)
    return encoder(stream.buffer, errors)
