import collections
import concurrent.futures
import hashlib

from dupestash import (
    log,
    platform,
)


__all__ = (
    "HashResult",
    "Hasher",
    "hash_file",
)


# hash tasks queued per worker before the oldest result is waited on
PENDING_PER_WORKER = 4


def hash_file(path, buffer_size=platform.DEFAULT_BUFFER_SIZE):
    """SHA-256 of the full content of the file at `path`, as lowercase hex."""
    digest = hashlib.sha256()
    with open(path, "rb") as stream:
        while True:
            buffer = stream.read(buffer_size)
            if not buffer:
                break
            digest.update(buffer)
    return digest.hexdigest()


HashResult = collections.namedtuple(
    "HashResult", (
        "path",
        "content_hash",
        "error",
    )
)


class Hasher(object):
    """Hashes a stream of paths on a bounded pool of worker threads.

    Call an instance with an iterable of paths. It yields one HashResult per
    path, in the order the paths were supplied, whatever order the workers
    finish in. A path that cannot be read yields a result with
    `content_hash` None and the OSError in `error`; nothing is raised.
    """
    def __init__(self, jobs=None, buffer_size=None, logger=None):
        if jobs is not None and jobs >= 1:
            self._jobs = jobs
        else:
            self._jobs = platform.decide_worker_count()

        self._buffer_size = platform.decide_buffer_size(buffer_size)
        self._logger = logger if logger is not None else log.NullLogger()

    @property
    def jobs(self):
        return self._jobs

    def __call__(self, paths):
        if self._jobs == 1:
            for path in paths:
                yield self._hash_one(path)
        else:
            yield from self._hash_concurrently(paths)

    def _hash_one(self, path):
        try:
            return HashResult(path, hash_file(path, self._buffer_size), None)
        except OSError as env_error:
            return HashResult(path, None, env_error)

    def _hash_concurrently(self, paths):
        window = self._jobs * PENDING_PER_WORKER
        pending = collections.deque()

        self._logger.debug("Hashing with {} workers", self._jobs)
        with concurrent.futures.ThreadPoolExecutor(max_workers=self._jobs) as executor:
            for path in paths:
                pending.append(executor.submit(self._hash_one, path))
                if len(pending) >= window:
                    yield pending.popleft().result()

            while pending:
                yield pending.popleft().result()
