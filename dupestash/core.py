import atexit
import collections
import os
import sqlite3
import sys
import tempfile


__all__ = (
    "FileRecord",
    "DuplicateGroup",
    "RunStats",
    "MemoryIndexer",
    "DatabaseIndexer",
    "INDEXERS",
    "create_indexer",
)


class FileRecord(collections.namedtuple("FileRecord", ("content_hash", "path"))):
    """One hashed file: the hex SHA-256 of its content and its absolute path."""
    __slots__ = ()

    @property
    def basename(self):
        return os.path.basename(self.path)


class DuplicateGroup(tuple):
    """An immutable, path-ordered collection of paths sharing one content hash.

    Members are sorted lexicographically by path and stored once each. That
    order is the tie-break order used when choosing which member to keep.
    """

    def __new__(cls, content_hash, paths):
        instance = super().__new__(cls, sorted(set(paths)))
        instance.content_hash = content_hash
        return instance

    def __repr__(self):
        return "%s(%r, %r)" % (
            type(self).__name__,
            self.content_hash,
            list(self),
        )


class RunStats(object):
    """Counters accumulated over one run.

    Attributes:
        scanned (int): files hashed, or inventory records accepted.
        skipped (int): files or records passed over because they could not be
            read, or were excluded from an inventory.
        rejected (int): malformed inventory records.
        groups (int): duplicate groups processed.
        kept (int): keepers announced, one per group.
        moved (int): files moved into quarantine.
        would_move (int): moves a dry run would have made.
        conflicted (int): moves skipped to avoid an overwrite.
        failed (int): moves that raised an error.
    """
    __slots__ = (
        "scanned", "skipped", "rejected",
        "groups", "kept",
        "moved", "would_move", "conflicted", "failed",
    )

    def __init__(self):
        for name in self.__slots__:
            setattr(self, name, 0)

    def __repr__(self):
        return "%s(%s)" % (
            type(self).__name__,
            ", ".join("%s=%d" % item for item in self.as_dict().items()),
        )

    def as_dict(self):
        return collections.OrderedDict(
            (name, getattr(self, name)) for name in self.__slots__
        )


class MemoryIndexer(object):
    """Groups (hash, path) pairs in a dict. Fine up to a few million files."""
    def __init__(self):
        self._paths = collections.defaultdict(set)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.dispose()

    def add(self, content_hash, path):
        self._paths[content_hash].add(path)

    def groups(self):
        for content_hash in sorted(self._paths):
            paths = self._paths[content_hash]
            if len(paths) > 1:
                yield DuplicateGroup(content_hash, paths)

    def dispose(self):
        self._paths.clear()


def fetch_iterator(sqlite_cursor):
    while True:
        chunk = sqlite_cursor.fetchmany()
        if len(chunk) > 0:
            for row in chunk:
                yield row
        else:
            break


DB_COMMIT_FREQ = 0x4000
class DatabaseIndexer(object):
    """Groups (hash, path) pairs in a temporary SQLite database, so inventories
    larger than memory can be sorted and grouped on disk. The database is
    removed by dispose(), on leaving a with block, or at interpreter exit."""
    def __init__(self):
        self._dir = tempfile.mkdtemp(prefix="dupestash-")
        self._path = os.path.join(self._dir, "hashindex")
        atexit.register(self.dispose)

        self._counter = 0
        self._conn = sqlite3.connect(self._path)

        cursor = self._conn.cursor()

        # paths are stored as os.fsencode() blobs so undecodable names survive
        cursor.execute("""\
            create table records (
                hash text,
                path blob,
                unique (hash, path) on conflict ignore
            )
        """)

        cursor.execute("""\
            create index hash_index on records (hash)
        """)

        cursor.close()
        self._conn.commit()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.dispose()

    def dispose(self):
        if getattr(self, "_path", None) is None:
            return

        atexit.unregister(self.dispose)
        self._conn.commit()
        self._conn.close()
        self._conn = None

        path = self._path
        self._path = None

        try:
            os.remove(path)
            os.rmdir(self._dir)
        except OSError as os_error:
            print(str(os_error), file=sys.stderr)

    def __del__(self):
        self.dispose()

    def add(self, content_hash, path):
        self._conn.execute("""\
            insert into records values (?,?)
        """, (content_hash, os.fsencode(path)))

        self._counter += 1
        if self._counter >= DB_COMMIT_FREQ:
            self.end()

    def end(self):
        self._counter = 0
        self._conn.commit()

    def groups(self):
        self.end()

        hash_cursor = self._conn.cursor()
        hash_cursor.execute("""\
            select hash from records
            group by hash
            having count(*) > 1
            order by hash
        """)

        for (content_hash,) in fetch_iterator(hash_cursor):
            set_cursor = self._conn.cursor()
            set_cursor.execute("""\
                select path from records
                where hash = ?
            """, (content_hash,))

            paths = [ os.fsdecode(path) for (path,) in set_cursor.fetchall() ]
            set_cursor.close()

            yield DuplicateGroup(content_hash, paths)

        hash_cursor.close()


INDEXERS = collections.OrderedDict((
    ("memory", MemoryIndexer),
    ("sqlite", DatabaseIndexer),
))


def create_indexer(name="memory"):
    try:
        return INDEXERS[name]()
    except KeyError:
        raise ValueError("Unknown index type: %r" % name)
