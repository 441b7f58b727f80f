import functools
import os
import sys
import time

from dupestash import (
    core,
    fs,
    hashing,
    inventory,
    log,
    move,
    platform,
    report,
    scan,
    units,
)
from dupestash.resolve import resolve


__all__ = (
    "ConfigError",
    "RunConfig",
    "MODES",
    "run",
)


MODE_INVENTORY = "inventory"
MODE_DRY_RUN = "dry-run"
MODE_EXECUTE = "execute"
MODES = (MODE_INVENTORY, MODE_DRY_RUN, MODE_EXECUTE)

DEFAULT_QUARANTINE_NAME = "DUPES"
STDIN_PATH = "-"


class ConfigError(ValueError):
    pass


class RunConfig(object):
    """Configuration object for the run() function.

    Attributes:
        mode (str or None): One of MODES. 'inventory' prints a hash for every
            eligible file and stops there; 'dry-run' groups, resolves and
            checks every move without touching the filesystem; 'execute'
            performs the moves.

        scan_root (str or None): The directory to deduplicate. Must exist.

        quarantine_root (str or None): Where duplicates are moved to. Defaults
            to a DUPES directory inside `scan_root`.

        extensions (set of str): File extensions to consider, lowercase and
            without the dot.

        include_empty (bool): If True, zero-length files are hashed like any
            other. They all have the same content.

        inventory_path (str or None): Read (hash, path) records from this file,
            or from STDIN if it is '-', instead of scanning `scan_root`. Not
            valid in 'inventory' mode.

        hash_first (bool): In 'inventory' mode, write HASH<TAB>PATH instead of
            PATH<TAB>HASH.

        group_limit (int): Stop after this many duplicate groups. 0 means no
            limit.

        jobs (int): Number of hashing threads. 0 picks a default for this
            machine.

        buffer_size (int): Read size used when hashing and copying. 0 uses
            platform.DEFAULT_BUFFER_SIZE.

        index (str): 'memory' groups hashes in a dict; 'sqlite' groups them in
            a temporary database, for inventories too large for memory.

        log_time (bool): If True, add the elapsed time to the summary.
    """
    def __init__(self):
        self.mode = None
        self.scan_root = None
        self.quarantine_root = None
        self.extensions = scan.DEFAULT_EXTENSIONS
        self.include_empty = False
        self.inventory_path = None
        self.hash_first = False
        self.group_limit = 0
        self.jobs = 0
        self.buffer_size = 0
        self.index = "memory"
        self.log_time = False


def normalize_extensions(extensions):
    return frozenset(
        extension.strip().lstrip(".").lower()
        for extension in extensions
        if extension.strip().lstrip(".")
    )


def validate_config(config):
    """Check `config` before anything is read.

    Returns:
        (scan_root, quarantine_root, extensions), normalized.

    Raises:
        ConfigError: describing the first problem found.
    """
    if config.mode is None:
        raise ConfigError("No mode specified. Choose one of: %s" % ", ".join(MODES))

    if config.mode not in MODES:
        raise ConfigError("Unknown mode %r. Choose one of: %s" % (config.mode, ", ".join(MODES)))

    if not config.scan_root:
        raise ConfigError("No scan root specified")

    scan_root = fs.normalize(config.scan_root)
    if not os.path.isdir(scan_root):
        raise ConfigError("Scan root does not exist or is not a directory: %s" % scan_root)

    if config.quarantine_root:
        quarantine_root = fs.normalize(config.quarantine_root)
    else:
        quarantine_root = os.path.join(scan_root, DEFAULT_QUARANTINE_NAME)

    if fs.is_under(scan_root, quarantine_root):
        raise ConfigError("Quarantine directory %s must not be or contain the scan root" % quarantine_root)

    if os.path.lexists(quarantine_root) and not os.path.isdir(quarantine_root):
        raise ConfigError("Quarantine path exists and is not a directory: %s" % quarantine_root)

    extensions = normalize_extensions(config.extensions)
    if len(extensions) == 0:
        raise ConfigError("No file extensions specified")

    if config.inventory_path is not None:
        if config.mode == MODE_INVENTORY:
            raise ConfigError("An inventory file cannot be read in inventory mode")
        if config.inventory_path != STDIN_PATH and not os.path.isfile(config.inventory_path):
            raise ConfigError("Inventory file does not exist: %s" % config.inventory_path)

    if config.group_limit is not None and config.group_limit < 0:
        raise ConfigError("Group limit must not be negative")

    if config.jobs is not None and config.jobs < 0:
        raise ConfigError("Job count must not be negative")

    if config.index not in core.INDEXERS:
        raise ConfigError("Unknown index type %r. Choose one of: %s" % (
            config.index, ", ".join(core.INDEXERS)
        ))

    return scan_root, quarantine_root, extensions


def run(config, output=None, logger=None, progress_handler=None):
    """Run one deduplication pass.

    Args:
        config (RunConfig): What to do and where.
        output (file or None): Receives the inventory or outcome stream.
            Defaults to STDOUT.
        logger (log.Logger or None): Receives diagnostics.
        progress_handler (object or None): Gets `progress(count, path)` calls
            while files are hashed, and `complete()` at the end.

    Returns:
        the RunStats of the run.

    Raises:
        ConfigError: if the configuration is invalid. Nothing has been read
            at that point.
    """
    if output is None:
        output = sys.stdout
    if logger is None:
        logger = log.NullLogger()

    scan_root, quarantine_root, extensions = validate_config(config)

    stats = core.RunStats()
    start_time = time.time()

    logger.verbose("Mode: {}", config.mode)
    logger.verbose("Scan root: {}", scan_root)
    logger.verbose("Quarantine: {}", quarantine_root)

    if config.inventory_path is not None:
        records = read_inventory(
            config.inventory_path, quarantine_root, extensions, logger, stats
        )
    else:
        hasher = hashing.Hasher(config.jobs, config.buffer_size, logger)
        logger.verbose(
            "Hashing with {jobs} threads, {size} reads",
            jobs=hasher.jobs,
            size=units.format_byte_count(platform.decide_buffer_size(config.buffer_size)),
        )
        scanner = scan.Scanner(
            quarantine_root,
            extensions = extensions,
            include_empty = config.include_empty,
            hasher = hasher,
            logger = logger,
            progress_handler = progress_handler,
        )
        records = scanner(scan_root, stats)

    if config.mode == MODE_INVENTORY:
        emit_inventory(records, output, config.hash_first, logger, stats)
    else:
        mover = move.Mover(
            scan_root,
            quarantine_root,
            dry_run = config.mode == MODE_DRY_RUN,
            buffer_size = config.buffer_size,
            logger = logger,
        )
        deduplicate(records, mover, output, config.index, config.group_limit, logger, stats)

        formatter = report.OutcomeFormatter()
        elapsed = time.time() - start_time if config.log_time else None
        for line in formatter.format_summary(stats, mover.dry_run, elapsed):
            print(line, file=output)

    logger.verbose("Finished: {!r}", stats)
    return stats


def emit_inventory(records, output, hash_first, logger, stats):
    for record in records:
        if not inventory.is_representable(record.path):
            stats.skipped += 1
            logger.warning("Path cannot be written to an inventory: {!r}", record.path)
            continue
        print(inventory.format_record(record, hash_first), file=output)


def read_inventory(path, quarantine_root, extensions, logger, stats):
    """Yield the usable FileRecords of an inventory file, counting the rest."""
    def on_error(parse_error):
        stats.rejected += 1
        logger.warning("{}: {!s}", path, parse_error)

    if path == STDIN_PATH:
        stream = sys.stdin
    else:
        stream = open(path, "r", encoding="utf-8", errors="surrogateescape")

    try:
        for record in inventory.read_records(stream, on_error):
            basename = record.basename
            if fs.is_metadata_junk(basename):
                reason = "metadata file"
            elif not fs.has_allowed_extension(basename, extensions):
                reason = "extension not allowed"
            elif fs.is_under(record.path, quarantine_root):
                reason = "already under quarantine"
            else:
                stats.scanned += 1
                yield core.FileRecord(record.content_hash, fs.normalize(record.path))
                continue

            stats.skipped += 1
            logger.debug("Skipping {} ({})", record.path, reason)
    finally:
        if stream is not sys.stdin:
            stream.close()


def deduplicate(records, mover, output, index, group_limit, logger, stats):
    out = functools.partial(print, file=output)
    formatter = report.OutcomeFormatter()

    with core.create_indexer(index) as indexer:
        for record in records:
            indexer.add(record.content_hash, record.path)

        logger.verbose("Hashing complete, grouping")

        for group in indexer.groups():
            process_group(group, mover, formatter, out, logger, stats)

            if group_limit and stats.groups >= group_limit:
                logger.info("Limit reached: {} groups", group_limit)
                break


def process_group(group, mover, formatter, out, logger, stats):
    resolution = resolve(group)

    stats.groups += 1
    stats.kept += 1
    logger.debug(
        "Group {n}: {hash} ({count} files), keeper score {score}",
        n=stats.groups,
        hash=group.content_hash,
        count=len(group),
        score=resolution.keeper_score,
    )
    out(formatter.format_keep(resolution))

    for path, score in resolution.candidates:
        logger.debug("Candidate score {}: {}", score, path)
        result = mover(path, group.content_hash)
        tally(result, stats)
        if result.outcome == move.Outcome.failed:
            logger.error("Could not move {}: {}", result.source, result.reason)
        out(formatter.format_result(result))


def tally(result, stats):
    if result.outcome == move.Outcome.moved:
        stats.moved += 1
    elif result.outcome == move.Outcome.would_move:
        stats.would_move += 1
    elif result.outcome == move.Outcome.conflict:
        stats.conflicted += 1
    else:
        stats.failed += 1
