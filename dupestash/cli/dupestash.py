import argparse
import sys

from dupestash import (
    engine,
    scan,
)
from dupestash.cli._common import (
    add_common_cli_args,
    byte_count_arg,
    count_arg,
    create_logger,
    set_encoder_errors,
)


__all__ = ("run", "main")


EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_CONFIG_ERROR = 2


def get_arg_parser():
    p = argparse.ArgumentParser(
        description="""Find files with identical content under a directory and
                       move all but the cleanest-named copy of each into a
                       quarantine directory. Files are never renamed and
                       nothing is ever overwritten.""",
        epilog="""Arguments that accept byte counts accept an integer with an
                  optional suffix indicating units.  'B' indicates bytes, which
                  is also the default if no suffix is provided.  'K' indicates
                  kibibytes (1024 bytes).  'M' indicates mebibytes.  'G'
                  indicates gibibytes, and 'T' indicates tebibytes."""
    )

    p.add_argument("root",
        metavar="ROOT",
        help="""The directory to deduplicate."""
    )

    modes = p.add_argument_group("modes (exactly one is required)")
    mode = modes.add_mutually_exclusive_group(required=True)

    mode.add_argument("--inventory",
        dest="mode",
        action="store_const",
        const=engine.MODE_INVENTORY,
        help="""Print PATH<TAB>SHA256 for every eligible file and stop."""
    )

    mode.add_argument("-n", "--dry-run",
        dest="mode",
        action="store_const",
        const=engine.MODE_DRY_RUN,
        help="""Print what would be kept, moved or skipped as a conflict,
                without changing anything."""
    )

    mode.add_argument("-x", "--execute",
        dest="mode",
        action="store_const",
        const=engine.MODE_EXECUTE,
        help="""Move duplicates into the quarantine directory."""
    )

    p.add_argument("-d", "--quarantine",
        metavar="DIR",
        help="""Move duplicates to %(metavar)s, keeping their paths relative
                to ROOT. The default is ROOT/DUPES. It is never scanned."""
    )

    p.add_argument("-i", "--from-inventory",
        metavar="FILE",
        help="""Read HASH<TAB>PATH records from %(metavar)s instead of
                scanning ROOT. Use - to read STDIN. Not valid with
                --inventory."""
    )

    p.add_argument("-l", "--limit",
        type=count_arg,
        default=0,
        metavar="N",
        help="""Process only the first %(metavar)s duplicate groups, in hash
                order. The default of 0 processes all of them."""
    )

    p.add_argument("-e", "--extensions",
        default=",".join(sorted(scan.DEFAULT_EXTENSIONS)),
        metavar="LIST",
        help="""Comma separated list of file extensions to consider, matched
                without regard to case. The default is %(default)s."""
    )

    p.add_argument("-z", "--zero",
        action="store_true",
        help="""Include zero-length files. All zero-length files are considered
                to have identical content."""
    )

    p.add_argument("--hash-first",
        action="store_true",
        help="""With --inventory, print SHA256<TAB>PATH instead."""
    )

    p.add_argument("-j", "--jobs",
        type=count_arg,
        default=0,
        metavar="N",
        help="""Hash with %(metavar)s threads. The default of 0 picks a number
                based on the CPU count."""
    )

    p.add_argument("--buffer-size",
        type=byte_count_arg,
        default=0,
        metavar="SIZE",
        help="""Size of each read when hashing or copying files. This option
                accepts a byte count."""
    )

    p.add_argument("--index",
        choices=("memory", "sqlite"),
        default="memory",
        help="""Where hashes are grouped. 'sqlite' uses a temporary database
                and suits inventories too large for memory. The default is
                %(default)s."""
    )

    p.add_argument("--time",
        action="store_true",
        help="""Add elapsed time to the summary."""
    )

    p.add_argument("--progress",
        action="store_true",
        help="""Show hashing progress on STDERR."""
    )

    add_common_cli_args(p)

    return p


def main():
    """Entry point for dupestash command.

    Returns:
        Exit code for passing to sys.exit()
    """
    return run(sys.argv[1:])


def run(argv=None):
    """Run dupestash with the specified command line arguments.

    Args:
        argv (list of str or None): command line arguments, not including the
            command itself (argv[0]).

    Returns:
        Exit code for passing to sys.exit()
    """
    p = get_arg_parser()
    args = p.parse_args(argv)
    logger = create_logger(args)

    # inventories keep undecodable names byte for byte
    sys.stdout = set_encoder_errors(
        sys.stdout,
        "surrogateescape" if args.mode == engine.MODE_INVENTORY else "backslashreplace"
    )

    if args.hash_first and args.mode != engine.MODE_INVENTORY:
        logger.warning("--hash-first has no effect without --inventory")

    config = engine.RunConfig()
    config.mode = args.mode
    config.scan_root = args.root
    config.quarantine_root = args.quarantine
    config.extensions = args.extensions.split(",")
    config.include_empty = args.zero
    config.inventory_path = args.from_inventory
    config.hash_first = args.hash_first
    config.group_limit = args.limit
    config.jobs = args.jobs
    config.buffer_size = args.buffer_size
    config.index = args.index
    config.log_time = args.time

    progress_handler = ProgressHandler(stream=sys.stderr) if args.progress else None

    try:
        stats = engine.run(config, sys.stdout, logger, progress_handler)
    except engine.ConfigError as config_error:
        logger.error(str(config_error))
        return EXIT_CONFIG_ERROR

    return EXIT_FAILURES if stats.failed > 0 else EXIT_OK


class ProgressHandler(object):
    def __init__(self, stream=None, line_width=78, elide_string="..."):
        self._line_width = line_width
        self._elide_string = elide_string
        self._stream = stream if stream is not None else sys.stderr
        self._last_len = 0

    def progress(self, count, path):
        self.set_text("%d hashed: %s" % (count, path))

    def complete(self):
        self.set_text("")
        self.set_text("")

    def set_text(self, text):
        effective_text, _, _ = str(text).partition("\n")
        effective_text = effective_text.replace("\t", "    ")
        if len(effective_text) > self._line_width:
            # keep the end of the path, where the file name is
            keep = self._line_width - len(self._elide_string)
            effective_text = self._elide_string + effective_text[-keep:]

        this_len = len(effective_text)
        self._stream.write("\r%s" % effective_text)
        if this_len < self._last_len:
            self._stream.write(" " * (self._last_len - this_len))
        self._stream.flush()
        self._last_len = this_len
