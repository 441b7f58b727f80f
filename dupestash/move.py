import collections
from enum import Enum
import errno
import hashlib
import os
import shutil
import tempfile

from dupestash import (
    fs,
    hashing,
    log,
    platform,
)


__all__ = (
    "Outcome",
    "MoveResult",
    "Mover",
)


class Outcome(Enum):
    moved = 1
    would_move = 2
    conflict = 3
    failed = 4


MoveResult = collections.namedtuple(
    "MoveResult", (
        "outcome",
        "source",
        "destination",
        "reason",
    )
)


class DestinationExists(Exception):
    pass


class ContentMismatch(Exception):
    pass


# os.link() failures meaning "no hard link possible here", as opposed to a
# problem with the file itself. Any of these falls back to copying.
LINK_UNSUPPORTED_ERRNOS = frozenset(
    getattr(errno, name)
    for name in ("EXDEV", "EPERM", "ENOTSUP", "EOPNOTSUPP", "EMLINK", "ENOSYS")
    if hasattr(errno, name)
)

TEMP_SUFFIX = ".dupestash-partial"


def nearest_existing(path):
    """`path`, or its closest ancestor that exists."""
    while not os.path.lexists(path):
        parent = os.path.dirname(path)
        if parent == path:
            break
        path = parent
    return path


def remove_quietly(path, logger):
    try:
        if os.path.lexists(path):
            os.unlink(path)
    except OSError as env_error:
        logger.error("Could not remove {path}: {error!s}", path=path, error=env_error)


class Mover(object):
    """Moves duplicate files into a quarantine tree that mirrors the scan root.

    Calling an instance with a source path returns a MoveResult. The checks
    are the same with and without `dry_run`; a dry run only stops short of
    creating directories and moving:

    1. A source already under the quarantine root is a conflict.
    2. The destination is the source's path relative to the scan root, joined
       to the quarantine root. Sources outside the scan root, missing, or not
       regular files fail, as does a destination whose directory cannot be
       created because a file is in the way.
    3. An existing destination is a conflict and is never overwritten.
    4. Otherwise the file is moved. On one filesystem the source is hard
       linked to the destination, which fails rather than replace anything,
       and then unlinked. Where that is not possible the content is copied to
       a temporary name beside the destination, verified against its hash,
       linked into place, and only then is the source removed.

    The file keeps its name throughout. No error escapes; everything is
    reported through the returned MoveResult.
    """
    def __init__(self, scan_root, quarantine_root, dry_run=True, buffer_size=None, logger=None):
        self._scan_root = fs.normalize(scan_root)
        self._quarantine_root = fs.normalize(quarantine_root)
        self._dry_run = dry_run
        self._buffer_size = platform.decide_buffer_size(buffer_size)
        self._logger = logger if logger is not None else log.NullLogger()

    @property
    def dry_run(self):
        return self._dry_run

    def destination_for(self, source):
        return fs.mirror_path(source, self._scan_root, self._quarantine_root)

    def __call__(self, source, content_hash=None):
        source = fs.normalize(source)

        if fs.is_under(source, self._quarantine_root):
            return MoveResult(Outcome.conflict, source, None, "already under quarantine; skipped")

        try:
            destination = self.destination_for(source)
        except ValueError:
            return MoveResult(Outcome.failed, source, None, "outside scan root")

        if not os.path.lexists(source):
            return MoveResult(Outcome.failed, source, destination, "source missing")

        if os.path.islink(source) or not os.path.isfile(source):
            return MoveResult(Outcome.failed, source, destination, "not a regular file")

        blocker = nearest_existing(os.path.dirname(destination))
        if not os.path.isdir(blocker):
            return MoveResult(Outcome.failed, source, destination, "not a directory: %s" % blocker)

        if not self._dry_run:
            try:
                os.makedirs(os.path.dirname(destination), exist_ok=True)
            except OSError as env_error:
                return MoveResult(Outcome.failed, source, destination, str(env_error))

        if os.path.lexists(destination):
            return MoveResult(
                Outcome.conflict, source, destination,
                "destination exists; would skip" if self._dry_run
                else "destination exists; skipped"
            )

        if self._dry_run:
            return MoveResult(Outcome.would_move, source, destination, None)

        try:
            self._relocate(source, destination, content_hash)
        except DestinationExists:
            return MoveResult(Outcome.conflict, source, destination, "destination appeared; skipped")
        except ContentMismatch as mismatch:
            return MoveResult(Outcome.failed, source, destination, str(mismatch))
        except OSError as env_error:
            return MoveResult(Outcome.failed, source, destination, str(env_error))

        return MoveResult(Outcome.moved, source, destination, None)

    def _relocate(self, source, destination, content_hash):
        try:
            os.link(source, destination)
        except FileExistsError:
            raise DestinationExists(destination)
        except OSError as link_error:
            if link_error.errno not in LINK_UNSUPPORTED_ERRNOS:
                raise
            self._logger.debug(
                "Cannot link {source} to {destination} ({error!s}), copying",
                source=source, destination=destination, error=link_error,
            )
            self._copy_verify_claim(source, destination, content_hash)

        self._remove_source(source, destination)

    def _remove_source(self, source, destination):
        try:
            os.unlink(source)
        except OSError:
            # leave the file where it was rather than in both places
            remove_quietly(destination, self._logger)
            raise

    def _copy_verify_claim(self, source, destination, content_hash):
        directory, name = os.path.split(destination)
        fd, temp_path = tempfile.mkstemp(prefix="." + name + ".", suffix=TEMP_SUFFIX, dir=directory)

        try:
            digest = hashlib.sha256()
            with os.fdopen(fd, "wb") as out_stream, open(source, "rb") as in_stream:
                while True:
                    buffer = in_stream.read(self._buffer_size)
                    if not buffer:
                        break
                    digest.update(buffer)
                    out_stream.write(buffer)
                out_stream.flush()
                os.fsync(out_stream.fileno())

            shutil.copystat(source, temp_path)

            source_hash = digest.hexdigest()
            if content_hash is not None and source_hash != content_hash:
                raise ContentMismatch("content changed since it was hashed")

            if hashing.hash_file(temp_path, self._buffer_size) != source_hash:
                raise ContentMismatch("copy does not match source")

            self._claim(temp_path, destination)

        finally:
            remove_quietly(temp_path, self._logger)

    def _claim(self, temp_path, destination):
        try:
            os.link(temp_path, destination)
        except FileExistsError:
            raise DestinationExists(destination)
        except OSError as link_error:
            if link_error.errno not in LINK_UNSUPPORTED_ERRNOS:
                raise
            # no hard links on this filesystem at all: the narrowest check
            # left is immediately before the rename
            if os.path.lexists(destination):
                raise DestinationExists(destination)
            os.rename(temp_path, destination)
