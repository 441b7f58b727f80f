import hashlib
import io
import os
import shutil

import pytest

from dupestash import engine


SONG = b"ID3" + b"\x00\x01" * 2048
OTHER_SONG = b"ID3" + b"\x02\x03" * 2048


def sha256(data):
    return hashlib.sha256(data).hexdigest()


def write_file(path, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as out_stream:
        out_stream.write(data)
    return path


def write_files(source, target_dir, names):
    """Write `source` to the first name in `target_dir`, then copy it to the
    rest of the names."""
    master_path = write_file(os.path.join(target_dir, names[0]), source)
    for name in names[1:]:
        copy_path = os.path.join(target_dir, name)
        os.makedirs(os.path.dirname(copy_path), exist_ok=True)
        shutil.copy(master_path, copy_path)
    return [ os.path.join(target_dir, name) for name in names ]


def read_file(path):
    with open(path, "rb") as in_stream:
        return in_stream.read()


@pytest.fixture
def root(tmp_path):
    path = tmp_path / "root"
    path.mkdir()
    return str(path)


@pytest.fixture
def song_library(root):
    """The library from the README: one song in three places, plus noise."""
    write_files(SONG, root, [
        os.path.join("a", "song.mp3"),
        os.path.join("b", "song copy.mp3"),
        os.path.join("c", "song (1).mp3"),
        # same bytes, but neither is a music file
        os.path.join("a", ".DS_Store"),
        os.path.join("b", "notes.txt"),
        os.path.join("c", "._song (1).mp3"),
    ])
    write_file(os.path.join(root, "a", "other.flac"), OTHER_SONG)
    return root


def make_config(root, mode, **options):
    config = engine.RunConfig()
    config.mode = mode
    config.scan_root = root
    config.jobs = 1
    for name, value in options.items():
        setattr(config, name, value)
    return config


@pytest.fixture
def run_engine():
    """Run the engine, returning (stats, output text)."""
    def run(root, mode, **options):
        output = io.StringIO()
        stats = engine.run(make_config(root, mode, **options), output)
        return stats, output.getvalue()
    return run
