import os
import stat
from typing import AnyStr, Iterator


class PathAdapter(object):
    """A recreation of os.DirEntry which can be constructed from a path"""
    def __init__(self, path):
        self.path = os.fspath(path)
        self.dirname, self.name = os.path.split(self.path)

        self._stat = { }

    def __str__(self):
        return str(self.path)

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.path)

    def __fspath__(self):
        return self.path

    def is_dir(self, *, follow_symlinks=True):
        return stat.S_ISDIR(self.stat(follow_symlinks=follow_symlinks).st_mode)

    def is_file(self, *, follow_symlinks=True):
        return stat.S_ISREG(self.stat(follow_symlinks=follow_symlinks).st_mode)

    def is_symlink(self):
        return stat.S_ISLNK(self.stat(follow_symlinks=False).st_mode)

    def stat(self, *, follow_symlinks=True):
        follow = bool(follow_symlinks)
        if follow in self._stat:
            return self._stat[follow]

        result = os.stat(self.path, follow_symlinks=follow)
        self._stat[follow] = result
        return result


# A thin, caching view of one filesystem object, backed by either an
# os.DirEntry from a directory listing or a PathAdapter built from a plain
# path. All type queries are made without following symlinks: the scanner
# never follows links, so a link is reported as a link and nothing else.
class FileEntry(os.PathLike):
    def __init__(self, resource):
        if not isinstance(resource, (os.DirEntry, PathAdapter)):
            raise TypeError("resource must be an instance of os.DirEntry or PathAdapter")

        self._resource = resource

    def __str__(self) -> str:
        return str(self._resource.path)

    def __repr__(self) -> str:
        return "%s(%r)" % (type(self).__name__, self._resource.path)

    def __fspath__(self) -> AnyStr:
        return self._resource.path

    @classmethod
    def from_path(cls, path) -> 'FileEntry':
        return cls(PathAdapter(path))

    @classmethod
    def from_dir_entry(cls, entry) -> 'FileEntry':
        return cls(entry)

    def dir_content(self) -> Iterator['FileEntry']:
        """Children of this directory, ordered by name."""
        with os.scandir(self._resource.path) as entries:
            children = sorted(entries, key=lambda e: e.name)
        for entry in children:
            yield FileEntry.from_dir_entry(entry)

    @property
    def path(self) -> AnyStr:
        return self._resource.path

    @property
    def basename(self) -> AnyStr:
        return self._resource.name

    @property
    def stat(self) -> os.stat_result:
        return self._resource.stat(follow_symlinks=False)

    @property
    def size(self):
        return self.stat.st_size

    @property
    def is_file(self) -> bool:
        return self._resource.is_file(follow_symlinks=False)

    @property
    def is_dir(self) -> bool:
        return self._resource.is_dir(follow_symlinks=False)

    @property
    def is_symlink(self) -> bool:
        return self._resource.is_symlink()
