import errno
import os

import pytest

from dupestash import move
from dupestash.move import Mover, Outcome

from conftest import OTHER_SONG, SONG, read_file, sha256, write_file


@pytest.fixture
def layout(root):
    source = write_file(os.path.join(root, "b", "song copy.mp3"), SONG)
    quarantine = os.path.join(root, "DUPES")
    return root, quarantine, source


def leftover_temp_files(directory):
    found = [ ]
    for parent, _, files in os.walk(directory):
        found.extend(f for f in files if f.endswith(move.TEMP_SUFFIX))
    return found


def test_dry_run_touches_nothing(layout):
    root, quarantine, source = layout

    result = Mover(root, quarantine, dry_run=True)(source)

    assert result.outcome == Outcome.would_move
    assert result.destination == os.path.join(quarantine, "b", "song copy.mp3")
    assert os.path.exists(source)
    assert not os.path.exists(quarantine)


def test_execute_moves_into_mirrored_path(layout):
    root, quarantine, source = layout

    result = Mover(root, quarantine, dry_run=False)(source, sha256(SONG))

    destination = os.path.join(quarantine, "b", "song copy.mp3")
    assert result == (Outcome.moved, source, destination, None)
    assert not os.path.exists(source)
    assert read_file(destination) == SONG


def test_existing_destination_is_a_conflict(layout):
    root, quarantine, source = layout
    destination = write_file(os.path.join(quarantine, "b", "song copy.mp3"), OTHER_SONG)

    for dry_run in (True, False):
        result = Mover(root, quarantine, dry_run=dry_run)(source)

        assert result.outcome == Outcome.conflict
        assert result.destination == destination
        assert "destination exists" in result.reason
        assert read_file(source) == SONG
        assert read_file(destination) == OTHER_SONG


def test_dangling_symlink_destination_is_a_conflict(layout):
    root, quarantine, source = layout
    destination = os.path.join(quarantine, "b", "song copy.mp3")
    os.makedirs(os.path.dirname(destination))
    os.symlink(os.path.join(root, "nowhere"), destination)

    result = Mover(root, quarantine, dry_run=False)(source)

    assert result.outcome == Outcome.conflict
    assert os.path.islink(destination)
    assert os.path.exists(source)


def test_source_under_quarantine_is_a_conflict(layout):
    root, quarantine, _ = layout
    inside = write_file(os.path.join(quarantine, "x", "song.mp3"), SONG)

    result = Mover(root, quarantine, dry_run=False)(inside)

    assert result.outcome == Outcome.conflict
    assert result.destination is None
    assert read_file(inside) == SONG
    assert not os.path.exists(os.path.join(quarantine, "DUPES"))


def test_source_outside_scan_root_fails(tmp_path, layout):
    root, quarantine, _ = layout
    outside = write_file(str(tmp_path / "elsewhere" / "song.mp3"), SONG)

    result = Mover(root, quarantine, dry_run=False)(outside)

    assert result.outcome == Outcome.failed
    assert os.path.exists(outside)


def test_missing_source_fails(layout):
    root, quarantine, _ = layout

    for dry_run in (True, False):
        result = Mover(root, quarantine, dry_run=dry_run)(os.path.join(root, "gone.mp3"))
        assert result.outcome == Outcome.failed
        assert result.reason == "source missing"


def test_symlink_source_fails(layout):
    root, quarantine, source = layout
    link = os.path.join(root, "link.mp3")
    os.symlink(source, link)

    result = Mover(root, quarantine, dry_run=False)(link)

    assert result.outcome == Outcome.failed
    assert os.path.islink(link)


def test_lost_race_for_destination_is_a_conflict(layout, monkeypatch):
    root, quarantine, source = layout

    def link_exists(src, dst, **kwargs):
        raise FileExistsError(errno.EEXIST, "File exists", dst)

    monkeypatch.setattr(move.os, "link", link_exists)
    result = Mover(root, quarantine, dry_run=False)(source)

    assert result.outcome == Outcome.conflict
    assert read_file(source) == SONG


def test_cross_device_move_copies_then_deletes(layout, monkeypatch):
    root, quarantine, source = layout
    real_link = os.link
    calls = [ ]

    def link_across_devices(src, dst, **kwargs):
        calls.append(src)
        if src == source:
            raise OSError(errno.EXDEV, "Invalid cross-device link", src)
        return real_link(src, dst, **kwargs)

    monkeypatch.setattr(move.os, "link", link_across_devices)
    result = Mover(root, quarantine, dry_run=False)(source, sha256(SONG))

    assert result.outcome == Outcome.moved
    assert len(calls) == 2
    assert not os.path.exists(source)
    assert read_file(result.destination) == SONG
    assert leftover_temp_files(quarantine) == [ ]


def test_move_without_hard_link_support(layout, monkeypatch):
    root, quarantine, source = layout

    def no_links(src, dst, **kwargs):
        raise OSError(errno.EPERM, "Operation not permitted", src)

    monkeypatch.setattr(move.os, "link", no_links)
    result = Mover(root, quarantine, dry_run=False)(source, sha256(SONG))

    assert result.outcome == Outcome.moved
    assert not os.path.exists(source)
    assert read_file(result.destination) == SONG
    assert leftover_temp_files(quarantine) == [ ]


def test_copy_refuses_changed_content(layout, monkeypatch):
    root, quarantine, source = layout

    def no_links(src, dst, **kwargs):
        raise OSError(errno.EXDEV, "Invalid cross-device link", src)

    monkeypatch.setattr(move.os, "link", no_links)
    result = Mover(root, quarantine, dry_run=False)(source, sha256(OTHER_SONG))

    assert result.outcome == Outcome.failed
    assert result.reason == "content changed since it was hashed"
    assert read_file(source) == SONG
    assert not os.path.exists(result.destination)
    assert leftover_temp_files(quarantine) == [ ]


def test_failed_source_removal_leaves_file_in_place(layout, monkeypatch):
    root, quarantine, source = layout
    real_unlink = os.unlink

    def protected_unlink(path, *args, **kwargs):
        if path == source:
            raise PermissionError(errno.EACCES, "Permission denied", path)
        return real_unlink(path, *args, **kwargs)

    monkeypatch.setattr(move.os, "unlink", protected_unlink)
    result = Mover(root, quarantine, dry_run=False)(source)

    assert result.outcome == Outcome.failed
    assert read_file(source) == SONG
    assert not os.path.exists(result.destination)


def test_unexpected_link_error_fails(layout, monkeypatch):
    root, quarantine, source = layout

    def broken_link(src, dst, **kwargs):
        raise OSError(errno.EIO, "Input/output error", src)

    monkeypatch.setattr(move.os, "link", broken_link)
    result = Mover(root, quarantine, dry_run=False)(source)

    assert result.outcome == Outcome.failed
    assert "Input/output error" in result.reason
    assert read_file(source) == SONG


def test_blocked_destination_directory_fails_in_both_modes(layout):
    root, quarantine, source = layout
    blocker = write_file(os.path.join(quarantine, "b"), b"a file where a directory should be")

    dry_result = Mover(root, quarantine, dry_run=True)(source)
    result = Mover(root, quarantine, dry_run=False)(source)

    assert dry_result == result
    assert result.outcome == Outcome.failed
    assert result.reason == "not a directory: " + blocker
    assert read_file(source) == SONG
    assert os.path.isfile(blocker)


def test_quarantine_root_that_is_a_file_fails_in_dry_run(layout):
    root, quarantine, source = layout
    write_file(quarantine, b"")

    result = Mover(root, quarantine, dry_run=True)(source)

    assert result.outcome == Outcome.failed
    assert result.reason == "not a directory: " + quarantine
