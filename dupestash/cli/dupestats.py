import argparse
import sys

from dupestash import stats
from dupestash.cli._common import (
    add_common_cli_args,
    count_arg,
    create_logger,
    set_encoder_errors,
)


__all__ = ("run", "main")


def get_arg_parser():
    p = argparse.ArgumentParser(
        description="Print duplicate statistics for a hash inventory.",
        epilog="""The inventory holds one HASH<TAB>PATH or PATH<TAB>HASH record
                  per line, as written by 'dupestash --inventory'. .DS_Store
                  and ._* entries are ignored."""
    )

    p.add_argument("inventory",
        metavar="INVENTORY",
        help="""Path to the inventory file, or - to read STDIN."""
    )

    p.add_argument("--top",
        type=count_arg,
        default=stats.DEFAULT_TOP_GROUPS,
        metavar="N",
        help="""Show the %(metavar)s largest duplicate groups. The default is
                %(default)s."""
    )

    p.add_argument("--report",
        metavar="FILE",
        help="""Write every duplicate group and its paths to %(metavar)s."""
    )

    add_common_cli_args(p)

    return p


def main():
    """Entry point for dupestats command.

    Returns:
        Exit code for passing to sys.exit()
    """
    return run(sys.argv[1:])


def run(argv=None):
    sys.stdout = set_encoder_errors(sys.stdout, "backslashreplace")

    p = get_arg_parser()
    args = p.parse_args(argv)
    logger = create_logger(args)

    if args.inventory == "-":
        summary = stats.summarize(sys.stdin, logger)
        source_name = "(stdin)"
    else:
        try:
            with open(args.inventory, "r", encoding="utf-8", errors="surrogateescape") as stream:
                summary = stats.summarize(stream, logger)
        except OSError as env_error:
            logger.error(str(env_error))
            return 2
        source_name = args.inventory

    for line in stats.format_summary(summary, source_name, args.top):
        print(line)

    if args.report:
        print()
        print("Writing duplicate groups report to: %s" % args.report)
        try:
            with open(args.report, "x", encoding="utf-8", errors="surrogateescape") as report_stream:
                for line in stats.format_groups_report(summary, source_name):
                    print(line, file=report_stream)
        except OSError as env_error:
            logger.error(str(env_error))
            return 1
        print("Report written: %s" % args.report)

    return 0
