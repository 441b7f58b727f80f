from typing import Any, Callable, Iterator, List, Optional

from dupestash.fs._fileentry import FileEntry

FSPredicate = Callable[[FileEntry], bool]
ErrorHandler = Callable[[OSError], Any]


def catch_filter(inner_filter: Optional[FSPredicate], error_handler_func: ErrorHandler) -> FSPredicate:
    # No filter means include everything, and nothing can raise
    if inner_filter is None:
        def always_true(*args, **kwargs):
            return True
        return always_true

    # A filter that raises OSError (usually from a stat) excludes the entry
    # and reports the error
    def wrapped_func(*args, **kwargs):
        try:
            return inner_filter(*args, **kwargs)
        except OSError as env_error:
            error_handler_func(env_error)
            return False

    return wrapped_func


def noerror(_):
    pass


class Walker(object):
    """Depth-first walk of a directory tree yielding regular files.

    Directory entries are visited in name order, so two walks of an unchanged
    tree yield the same sequence. Symlinks are neither yielded nor followed,
    and anything that is not a regular file or a directory is passed over.
    `dir_object_filter` prunes subdirectories, `file_object_filter` drops
    files, and `onerror` receives every OSError raised while listing or
    querying, after which the walk carries on.
    """
    def __init__(
            self,
            dir_object_filter: Optional[FSPredicate]=None,
            file_object_filter: Optional[FSPredicate]=None,
            onerror: Optional[ErrorHandler]=None
    ):
        self._onerror = noerror if onerror is None else onerror
        self._dir_filter = catch_filter(dir_object_filter, self._onerror)
        self._file_filter = catch_filter(file_object_filter, self._onerror)

    def __call__(self, root_path) -> Iterator[FileEntry]:
        root_obj = FileEntry.from_path(root_path)
        try:
            is_dir = root_obj.is_dir
            is_file = root_obj.is_file
        except OSError as env_error:
            self._onerror(env_error)
            return

        if is_dir:
            yield from self._recurse_dir(root_obj)
        elif is_file and self._file_filter(root_obj):
            yield root_obj

    def _recurse_dir(self, root_obj: FileEntry) -> Iterator[FileEntry]:
        dir_obj_q: List[FileEntry] = [ root_obj ]
        next_dirs: List[FileEntry] = [ ]

        while len(dir_obj_q) > 0:
            dir_obj = dir_obj_q.pop()
            next_dirs.clear()

            try:
                for child_obj in dir_obj.dir_content():
                    try:
                        if child_obj.is_symlink:
                            continue

                        if child_obj.is_dir:
                            if self._dir_filter(child_obj):
                                next_dirs.append(child_obj)

                        elif (
                            child_obj.is_file and
                            self._file_filter(child_obj)
                        ):
                            yield child_obj
                    except OSError as query_error:
                        self._onerror(query_error)
            except OSError as env_error:
                self._onerror(env_error)

            dir_obj_q.extend(reversed(next_dirs))


def walk(
        root_path,
        dir_object_filter: Optional[FSPredicate]=None,
        file_object_filter: Optional[FSPredicate]=None,
        onerror: Optional[ErrorHandler]=None
) -> Iterator[FileEntry]:
    return Walker(dir_object_filter, file_object_filter, onerror)(root_path)
