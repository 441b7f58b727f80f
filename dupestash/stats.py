"""
Aggregate statistics over a hash inventory: how many files, how many are
duplicates, which groups are largest and which file types they are.
"""

import collections
import os

from dupestash import (
    fs,
    inventory,
    log,
)


__all__ = (
    "InventorySummary",
    "summarize",
    "format_summary",
    "format_groups_report",
)


NO_EXTENSION = "(none)"
DEFAULT_TOP_GROUPS = 20
DEFAULT_TOP_EXTENSIONS = 25
RULE = "━" * 66


GroupInfo = collections.namedtuple(
    "GroupInfo", (
        "count",
        "content_hash",
        "simplest",
    )
)


def simplest_name(paths):
    """The shortest basename among `paths`, earliest first on a tie."""
    return min(
        (os.path.basename(path) for path in paths),
        key = lambda name: (len(name), name),
    )


class InventorySummary(object):
    """Per-hash record of every usable path in an inventory.

    Attributes:
        ignored (int): .DS_Store and ._ records left out.
        rejected (int): malformed records.
    """
    def __init__(self):
        self.ignored = 0
        self.rejected = 0
        self._paths = collections.OrderedDict()

    def add(self, record):
        if fs.is_metadata_junk(record.basename):
            self.ignored += 1
            return False
        self._paths.setdefault(record.content_hash, [ ]).append(record.path)
        return True

    @property
    def total_files(self):
        return sum(len(paths) for paths in self._paths.values())

    @property
    def unique_hashes(self):
        return len(self._paths)

    @property
    def duplicate_groups(self):
        return sum(1 for paths in self._paths.values() if len(paths) > 1)

    @property
    def duplicate_files(self):
        return sum(len(paths) - 1 for paths in self._paths.values() if len(paths) > 1)

    def paths(self, content_hash):
        return list(self._paths.get(content_hash, ()))

    def groups(self, limit=None):
        """Duplicate groups, largest first, then by hash."""
        infos = sorted(
            (
                GroupInfo(len(paths), content_hash, simplest_name(paths))
                for content_hash, paths in self._paths.items()
                if len(paths) > 1
            ),
            key = lambda info: (-info.count, info.content_hash),
        )
        if limit is not None:
            return infos[:limit]
        return infos

    def extension_counts(self, limit=None):
        """(count, extension) pairs, most common first, then by name."""
        counter = collections.Counter()
        for paths in self._paths.values():
            for path in paths:
                _, extension = fs.split_extension(os.path.basename(path))
                counter[extension.lower() if extension else NO_EXTENSION] += 1

        ranked = sorted(
            ((count, extension) for extension, count in counter.items()),
            key = lambda pair: (-pair[0], pair[1]),
        )
        if limit is not None:
            return ranked[:limit]
        return ranked


def summarize(line_iter, logger=None):
    """Build an InventorySummary from inventory lines. Malformed lines are
    counted in `rejected` and logged as warnings."""
    if logger is None:
        logger = log.NullLogger()

    summary = InventorySummary()

    def on_error(parse_error):
        summary.rejected += 1
        logger.warning("{!s}", parse_error)

    for record in inventory.read_records(line_iter, on_error):
        summary.add(record)

    return summary


def format_summary(summary, source_name, top_groups=DEFAULT_TOP_GROUPS, top_extensions=DEFAULT_TOP_EXTENSIONS):
    yield "=== Inventory Summary ==="
    yield "Inventory file: %s" % source_name
    yield ""
    yield "Ignored entries (.DS_Store / ._*): %d" % summary.ignored
    if summary.rejected:
        yield "Rejected malformed records:       %d" % summary.rejected
    yield ""
    yield "Total individual files (usable):    %d" % summary.total_files
    yield "Total unique files (unique hash):   %d" % summary.unique_hashes
    yield "Total duplicate files:              %d" % summary.duplicate_files
    yield "Total duplicate groups:             %d" % summary.duplicate_groups
    yield ""
    yield "If deduped (keep 1 per hash):"
    yield "  Remaining files:                  %d" % summary.unique_hashes
    yield "  Files removed (savings):          %d" % summary.duplicate_files
    yield ""
    yield "Top %d largest duplicate groups:" % top_groups

    groups = summary.groups(top_groups)
    if groups:
        for info in groups:
            yield "%6d  %s" % (info.count, info.simplest)
    else:
        yield "  (none)"

    yield ""
    yield "File extension counts (top %d):" % top_extensions
    for count, extension in summary.extension_counts(top_extensions):
        yield "%8d  %s" % (count, extension)


def format_groups_report(summary, source_name):
    yield "=== Duplicate Groups Report ==="
    yield "Inventory: %s" % source_name
    yield "Ignored Apple garbage: %d" % summary.ignored
    yield "Total duplicate groups: %d" % summary.duplicate_groups
    yield ""

    for info in summary.groups():
        yield RULE
        yield "HASH: %s" % info.content_hash
        yield "COUNT: %d duplicates" % info.count
        yield "SIMPLEST: %s" % info.simplest
        yield ""
        for path in summary.paths(info.content_hash):
            yield "  %s" % path
        yield ""
