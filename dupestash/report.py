from dupestash import units
from dupestash.move import Outcome


__all__ = (
    "OutcomeFormatter",
)


OUTCOME_TAGS = {
    Outcome.moved: "MOVED",
    Outcome.would_move: "WOULD MOVE",
    Outcome.conflict: "CONFLICT",
    Outcome.failed: "FAILED",
}


class OutcomeFormatter(object):
    """Renders engine events as the line-oriented outcome stream.

    Each decision is one line starting with its tag (KEEP, WOULD MOVE, MOVED,
    CONFLICT or FAILED). Reasons are shown in parentheses after the tag, and
    the source and destination are separated by an arrow.
    """
    def __init__(self, arrow=" -> "):
        self._arrow = arrow

    def format_keep(self, resolution):
        return "KEEP: %s" % resolution.keeper

    def format_result(self, result):
        tag = OUTCOME_TAGS[result.outcome]
        if result.reason:
            tag = "%s (%s)" % (tag, result.reason)

        if result.destination is None:
            return "%s: %s" % (tag, result.source)
        return "%s: %s%s%s" % (tag, result.source, self._arrow, result.destination)

    def format_summary(self, stats, dry_run=False, elapsed=None):
        yield ""
        yield "# Summary"
        yield "# scanned: %d" % stats.scanned
        yield "# skipped: %d" % stats.skipped
        if stats.rejected:
            yield "# rejected: %d" % stats.rejected
        yield "# groups: %d" % stats.groups
        yield "# kept: %d" % stats.kept
        if dry_run:
            yield "# would move: %d" % stats.would_move
        else:
            yield "# moved: %d" % stats.moved
        yield "# conflicted: %d" % stats.conflicted
        yield "# failed: %d" % stats.failed
        if elapsed is not None:
            yield "# elapsed time: %s" % units.format_duration(elapsed)
        if dry_run:
            yield "# DRY RUN - no files moved. Use --execute to apply."
