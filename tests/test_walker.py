import logging
import os
from pathlib import Path

import pytest

from mediamirror.services.walker import iter_media_files, relative_key
from tests.helpers import write_file


def test_walker_yields_audio_files_at_any_depth(media_dir: Path) -> None:
    write_file(media_dir, "top.mp3")
    write_file(media_dir, "Artist/Album/01 - Song.FLAC")
    write_file(media_dir, "Artist/Album/cover.jpg")
    write_file(media_dir, "Artist/notes.txt")
    write_file(media_dir, "deep/a/b/c/track.opus")

    found = {relative_key(media_dir, path) for path in iter_media_files(media_dir)}

    assert found == {"top.mp3", "Artist/Album/01 - Song.FLAC", "deep/a/b/c/track.opus"}


def test_walker_yields_absolute_paths(media_dir: Path) -> None:
    write_file(media_dir, "song.ogg")

    paths = list(iter_media_files(media_dir))

    assert len(paths) == 1
    assert paths[0].is_absolute()


def test_walker_order_is_stable_and_restartable(media_dir: Path) -> None:
    for name in ("b.mp3", "a.mp3", "sub/z.wav", "sub/c.m4a", "c.aac"):
        write_file(media_dir, name)

    first = list(iter_media_files(media_dir))
    second = list(iter_media_files(media_dir))

    assert first == second
    assert len(first) == 5


def test_walker_is_lazy(media_dir: Path) -> None:
    write_file(media_dir, "a.mp3")
    iterator = iter_media_files(media_dir)
    assert next(iterator).name == "a.mp3"
    with pytest.raises(StopIteration):
        next(iterator)


def test_missing_root_yields_nothing(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        assert list(iter_media_files(tmp_path / "missing")) == []
    assert any(getattr(record, "event", None) == "walker.skip" for record in caplog.records)


def test_unreadable_directory_is_skipped(
    media_dir: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    write_file(media_dir, "ok/a.mp3")
    write_file(media_dir, "locked/b.mp3")
    real_scandir = os.scandir

    def _scandir(path):
        if Path(path).name == "locked":
            raise PermissionError(13, "Permission denied")
        return real_scandir(path)

    monkeypatch.setattr("mediamirror.services.walker.os.scandir", _scandir)

    with caplog.at_level(logging.WARNING):
        found = [relative_key(media_dir, path) for path in iter_media_files(media_dir)]

    assert found == ["ok/a.mp3"]
    skipped = [record for record in caplog.records if getattr(record, "event", None) == "walker.skip"]
    assert skipped and skipped[0].reason == "Permission denied"


def test_symlinked_directories_are_not_followed(media_dir: Path, tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    write_file(outside, "elsewhere.mp3")
    write_file(media_dir, "local.mp3")
    (media_dir / "link").symlink_to(outside, target_is_directory=True)

    found = [relative_key(media_dir, path) for path in iter_media_files(media_dir)]

    assert found == ["local.mp3"]


def test_dangling_symlink_is_reported_and_skipped(
    media_dir: Path, caplog: pytest.LogCaptureFixture
) -> None:
    write_file(media_dir, "ok.mp3")
    (media_dir / "gone.mp3").symlink_to(media_dir / "nowhere.mp3")

    with caplog.at_level(logging.WARNING):
        found = [relative_key(media_dir, path) for path in iter_media_files(media_dir)]

    assert found == ["ok.mp3"]
    skipped = [record for record in caplog.records if getattr(record, "event", None) == "walker.skip"]
    assert [(Path(record.path).name, record.reason) for record in skipped] == [
        ("gone.mp3", "broken symlink")
    ]


def test_symlinked_directory_is_not_reported_as_broken(
    media_dir: Path, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (media_dir / "link").symlink_to(outside, target_is_directory=True)

    with caplog.at_level(logging.WARNING):
        assert list(iter_media_files(media_dir)) == []

    assert not any(getattr(record, "event", None) == "walker.skip" for record in caplog.records)


def test_relative_key_uses_posix_separators(media_dir: Path) -> None:
    path = write_file(media_dir, "A/B/c.mp3")
    assert relative_key(media_dir, path) == "A/B/c.mp3"
