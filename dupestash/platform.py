import os


__all__ = (
    "DEFAULT_BUFFER_SIZE",
    "decide_max_open_files",
    "decide_worker_count",
    "decide_buffer_size",
)


MIN_BUFFER_SIZE = 4096
DEFAULT_BUFFER_SIZE = 1024 ** 2

# hashing is mostly waiting on the disk, so run a few more threads than cores
WORKERS_PER_CPU = 2
MAX_WORKERS = 32


ABSOLUTE_MAX_OPEN_FILES = 32768
FALLBACK_MAX_OPEN_FILES = 1024
def decide_max_open_files():
    try:
        import resource

        rid = None
        if hasattr(resource, "RLIMIT_NOFILE"):
            rid = resource.RLIMIT_NOFILE
        elif hasattr(resource, "RLIMIT_OFILE"):
            rid = resource.RLIMIT_OFILE

        if rid is not None:
            soft_limit, _ = resource.getrlimit(rid)
            if soft_limit == resource.RLIM_INFINITY:
                return ABSOLUTE_MAX_OPEN_FILES

            return max(1, int(soft_limit * 0.75))

    except ImportError:
        pass

    return FALLBACK_MAX_OPEN_FILES


def decide_worker_count():
    """Number of hashing threads to use when none is configured. Each worker
    holds at most one file open, so the open file limit also caps it."""
    cpus = os.cpu_count() or 1
    return max(1, min(
        cpus * WORKERS_PER_CPU,
        MAX_WORKERS,
        decide_max_open_files(),
    ))


def decide_buffer_size(requested):
    if requested is None or requested < 1:
        return DEFAULT_BUFFER_SIZE
    return max(MIN_BUFFER_SIZE, requested)
