from dupestash.fs._fileentry import FileEntry, PathAdapter
from dupestash.fs._paths import (
    has_allowed_extension,
    is_metadata_junk,
    is_under,
    mirror_path,
    normalize,
    split_extension,
)
from dupestash.fs._walker import Walker, walk


__all__ = (
    "FileEntry",
    "PathAdapter",
    "Walker",
    "has_allowed_extension",
    "is_metadata_junk",
    "is_under",
    "mirror_path",
    "normalize",
    "split_extension",
    "walk",
)
