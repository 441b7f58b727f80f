import io
import os

import pytest

from dupestash.cli import dupestash as dupestash_cli
from dupestash.cli import dupestats as dupestats_cli

from conftest import OTHER_SONG, SONG, read_file, sha256, write_file


def write_inventory(path, lines):
    with open(path, "w", encoding="utf-8") as out_stream:
        out_stream.write("".join(line + "\n" for line in lines))
    return path


def test_dry_run(song_library, capsys):
    assert dupestash_cli.run([ song_library, "--dry-run" ]) == dupestash_cli.EXIT_OK

    out, _ = capsys.readouterr()
    assert "KEEP: " + os.path.join(song_library, "a", "song.mp3") in out.splitlines()
    assert "# would move: 2" in out.splitlines()


def test_execute_with_options(song_library, capsys, tmp_path):
    quarantine = str(tmp_path / "parked")

    exit_code = dupestash_cli.run([
        song_library, "-x", "-d", quarantine, "-j", "2", "--index", "sqlite", "--time", "-q",
    ])

    assert exit_code == dupestash_cli.EXIT_OK
    assert read_file(os.path.join(quarantine, "b", "song copy.mp3")) == SONG
    out, err = capsys.readouterr()
    assert "# moved: 2" in out.splitlines()
    assert err == ""


def test_inventory_with_extensions(song_library, capsys):
    assert dupestash_cli.run([ song_library, "--inventory", "-e", "flac", "--hash-first" ]) == 0

    out, _ = capsys.readouterr()
    assert out.splitlines() == [ sha256(OTHER_SONG) + "\t" + os.path.join(song_library, "a", "other.flac") ]


@pytest.mark.parametrize("argv", [
    [ ],
    [ "ROOT" ],
    [ "ROOT", "-n", "-x" ],
    [ "ROOT", "--inventory", "--dry-run" ],
    [ "ROOT", "-n", "--limit", "-1" ],
    [ "ROOT", "-n", "--jobs", "two" ],
    [ "ROOT", "-n", "--buffer-size", "lots" ],
    [ "ROOT", "-n", "--index", "redis" ],
])
def test_usage_errors(song_library, argv, capsys):
    argv = [ song_library if arg == "ROOT" else arg for arg in argv ]

    with pytest.raises(SystemExit) as exit_info:
        dupestash_cli.run(argv)

    assert exit_info.value.code == 2


def test_missing_root_is_a_config_error(tmp_path, capsys):
    exit_code = dupestash_cli.run([ str(tmp_path / "nowhere"), "-n" ])

    assert exit_code == dupestash_cli.EXIT_CONFIG_ERROR
    out, err = capsys.readouterr()
    assert out == ""
    assert err.startswith("error: Scan root does not exist")


def test_inventory_in_inventory_mode_is_a_config_error(song_library, tmp_path, capsys):
    inventory_path = write_inventory(str(tmp_path / "inventory.txt"), [ ])

    exit_code = dupestash_cli.run([ song_library, "--inventory", "-i", inventory_path ])

    assert exit_code == dupestash_cli.EXIT_CONFIG_ERROR


def test_failed_move_sets_exit_code(song_library, tmp_path, capsys):
    outside = write_file(str(tmp_path / "elsewhere" / "song copy.mp3"), SONG)
    inventory_path = write_inventory(str(tmp_path / "inventory.txt"), [
        sha256(SONG) + "\t" + os.path.join(song_library, "a", "song.mp3"),
        sha256(SONG) + "\t" + outside,
    ])

    exit_code = dupestash_cli.run([ song_library, "--execute", "--from-inventory", inventory_path ])

    assert exit_code == dupestash_cli.EXIT_FAILURES
    out, err = capsys.readouterr()
    assert "# failed: 1" in out.splitlines()
    assert "error: Could not move " + outside in err
    assert os.path.exists(outside)


def test_version(capsys):
    with pytest.raises(SystemExit) as exit_info:
        dupestash_cli.run([ "--version" ])
    assert exit_info.value.code == 0


def test_progress_handler_elides_long_text():
    stream = io.StringIO()
    handler = dupestash_cli.ProgressHandler(stream=stream, line_width=20)

    handler.progress(8, "/music/a/very/long/path/to/song.mp3")
    handler.complete()

    first = stream.getvalue().split("\r")[1]
    assert first.startswith("...")
    assert first.endswith("song.mp3")
    assert len(first) == 20


@pytest.fixture
def stats_inventory(tmp_path):
    digest = sha256(SONG)
    return write_inventory(str(tmp_path / "inventory.txt"), [
        digest + "\t/music/a/song.mp3",
        digest + "\t/music/b/song copy.mp3",
        sha256(OTHER_SONG) + "\t/music/a/other.flac",
    ])


def test_dupestats(stats_inventory, capsys):
    assert dupestats_cli.run([ stats_inventory, "--top", "1" ]) == 0

    out, _ = capsys.readouterr()
    lines = out.splitlines()
    assert "Inventory file: " + stats_inventory in lines
    assert "Top 1 largest duplicate groups:" in lines
    assert "     2  song.mp3" in lines


def test_dupestats_report(stats_inventory, tmp_path, capsys):
    report_path = str(tmp_path / "groups.txt")

    assert dupestats_cli.run([ stats_inventory, "--report", report_path ]) == 0

    with open(report_path, encoding="utf-8") as in_stream:
        report = in_stream.read().splitlines()
    assert "  /music/b/song copy.mp3" in report
    out, _ = capsys.readouterr()
    assert "Report written: " + report_path in out.splitlines()


def test_dupestats_never_overwrites_report(stats_inventory, tmp_path, capsys):
    report_path = write_file(str(tmp_path / "groups.txt"), b"keep me")

    assert dupestats_cli.run([ stats_inventory, "--report", report_path ]) == 1
    assert read_file(report_path) == b"keep me"


def test_dupestats_missing_inventory(tmp_path, capsys):
    assert dupestats_cli.run([ str(tmp_path / "missing.txt") ]) == 2
    _, err = capsys.readouterr()
    assert err.startswith("error: ")


def test_inventory_round_trips_undecodable_names(root, tmp_path, capsysbinary):
    raw_root = os.fsencode(root)
    try:
        for directory in (b"a", b"b"):
            write_file(os.path.join(raw_root, directory, b"\xffsong.mp3"), SONG)
    except OSError:
        pytest.skip("filesystem does not accept undecodable names")

    assert dupestash_cli.run([ root, "--inventory" ]) == 0
    inventory, _ = capsysbinary.readouterr()
    assert os.path.join(raw_root, b"b", b"\xffsong.mp3") + b"\t" in inventory

    inventory_path = str(tmp_path / "inventory.txt")
    with open(inventory_path, "wb") as out_stream:
        out_stream.write(inventory)

    exit_code = dupestash_cli.run([ root, "--dry-run", "-i", inventory_path ])

    out, _ = capsysbinary.readouterr()
    lines = out.splitlines()
    assert exit_code == dupestash_cli.EXIT_OK
    assert b"# would move: 1" in lines
    assert b"# failed: 0" in lines
