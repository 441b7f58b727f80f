from dupestash import (
    fs,
    hashing,
    log,
)
from dupestash.core import FileRecord


__all__ = (
    "DEFAULT_EXTENSIONS",
    "Scanner",
)


DEFAULT_EXTENSIONS = frozenset(("mp3", "aif", "aiff", "wav", "ogg", "m4a", "flac"))

# invoke the progress handler after hashing this many files
PROGRESS_CALLBACK_FREQUENCY = 8


class NullProgressHandler(object):
    def progress(self, _count, _path):
        pass

    def complete(self):
        pass


class Scanner(object):
    """Walks a scan root and yields a FileRecord for every eligible file.

    Eligible files are regular, non-empty (unless `include_empty`), carry one
    of `extensions` and are not Finder metadata. The quarantine directory is
    pruned from the walk. Files that cannot be listed, stat'ed or read are
    logged and counted as skipped in the RunStats passed to each call.
    """
    def __init__(
        self,
        quarantine_root,
        extensions = DEFAULT_EXTENSIONS,
        include_empty = False,
        hasher = None,
        logger = None,
        progress_handler = None,
    ):
        self._quarantine_root = fs.normalize(quarantine_root)
        self._extensions = extensions
        self._include_empty = include_empty
        self._hasher = hasher if hasher is not None else hashing.Hasher()
        self._logger = logger if logger is not None else log.NullLogger()
        self._progress_handler = progress_handler or NullProgressHandler()

    def __call__(self, scan_root, stats):
        def onerror(env_error):
            stats.skipped += 1
            self._log_error(env_error)

        self._logger.info("Scanning {}", scan_root)

        entries = fs.walk(
            fs.normalize(scan_root),
            self._include_dir,
            self._include_file,
            onerror,
        )
        paths = (entry.path for entry in entries)

        count = 0
        for result in self._hasher(paths):
            if result.error is not None:
                stats.skipped += 1
                self._log_error(result.error, result.path)
                continue

            stats.scanned += 1
            count += 1
            if count % PROGRESS_CALLBACK_FREQUENCY == 0:
                self._progress_handler.progress(count, result.path)

            yield FileRecord(result.content_hash, result.path)

        self._progress_handler.complete()
        self._logger.verbose(
            "Scan complete: scanned={scanned} skipped={skipped}",
            scanned=stats.scanned,
            skipped=stats.skipped,
        )

    def _include_dir(self, entry):
        if fs.normalize(entry.path) == self._quarantine_root:
            self._logger.debug("Not descending into quarantine {}", entry.path)
            return False
        return True

    def _include_file(self, entry):
        if fs.is_metadata_junk(entry.basename):
            return False
        if not fs.has_allowed_extension(entry.basename, self._extensions):
            return False
        if not self._include_empty and entry.size == 0:
            return False
        return True

    def _log_error(self, error, path=None):
        if path is None:
            path = error.filename
        if path is None:
            self._logger.error(str(error))
        else:
            self._logger.error("{path!s}: {error!s}", path=path, error=error)
