import os


METADATA_JUNK_NAME = ".ds_store"
APPLE_DOUBLE_PREFIX = "._"


def normalize(path):
    """Absolute, normalized form of `path`, used for every prefix comparison."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def is_under(path, root):
    """True if `path` is `root` itself or lies anywhere beneath it."""
    path = normalize(path)
    root = normalize(root)
    if path == root:
        return True
    return path.startswith(root.rstrip(os.sep) + os.sep)


def mirror_path(source, scan_root, quarantine_root):
    """The quarantine location of `source`: its path relative to `scan_root`,
    re-rooted at `quarantine_root`.

    Raises:
        ValueError: if `source` is not beneath `scan_root`.
    """
    source = normalize(source)
    scan_root = normalize(scan_root)
    if source == scan_root or not is_under(source, scan_root):
        raise ValueError("%s is not inside %s" % (source, scan_root))
    return os.path.join(normalize(quarantine_root), os.path.relpath(source, scan_root))


def split_extension(basename):
    """Split a basename at its final dot into (stem, extension), dropping the
    dot. A name without a dot is all stem: ('notes', '')."""
    stem, dot, extension = basename.rpartition(".")
    if not dot:
        return basename, ""
    return stem, extension


def is_metadata_junk(basename):
    """Finder metadata: .DS_Store in any case, and AppleDouble ._ files."""
    return (
        basename.lower() == METADATA_JUNK_NAME or
        basename.startswith(APPLE_DOUBLE_PREFIX)
    )


def has_allowed_extension(basename, extensions):
    """Case-insensitive test of the final extension against `extensions`, a
    set of lowercase extensions without dots. None allows everything."""
    if extensions is None:
        return True
    return split_extension(basename)[1].lower() in extensions
