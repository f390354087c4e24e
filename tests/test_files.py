import os

import pytest

from livoxkit.files import (
    collect_file_names,
    delete_hidden_files,
    dir_total_size,
    make_directory,
    unhide_file,
    unhide_files,
)


def _write(path, data=b"x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def test_dir_total_size_sums_nested_files(tmp_path):
    first = b"abc"
    second = b"hello world"
    _write(tmp_path / "a.dat", first)
    _write(tmp_path / "sub" / "b.dat", second)
    assert dir_total_size(tmp_path) == len(first) + len(second)


def test_dir_total_size_of_file(tmp_path):
    data = b"12345"
    target = _write(tmp_path / "f.bin", data)
    assert dir_total_size(target) == len(data)


def test_dir_total_size_missing_is_zero(tmp_path):
    assert dir_total_size(tmp_path / "missing") == 0


def test_collect_file_names_orders_and_skips_hidden(tmp_path):
    later = "2023-05-06_07-08-09_SN0_0_2.dat"
    earlier = "2023-01-02_03-04-05_SN0_0_1.dat"
    _write(tmp_path / later)
    _write(tmp_path / "sub" / earlier)
    _write(tmp_path / ".2022-01-01_00-00-00_SN0_0_0.dat")
    result = collect_file_names(tmp_path)
    assert result == [
        ("2023-01-02_03-04-05", earlier),
        ("2023-05-06_07-08-09", later),
    ]


def test_collect_file_names_missing_dir_raises(tmp_path):
    with pytest.raises(OSError):
        collect_file_names(tmp_path / "missing")


def test_unhide_file_renames(tmp_path):
    _write(tmp_path / ".log.dat", b"data")
    assert unhide_file(tmp_path, ".log.dat") is True
    assert (tmp_path / "log.dat").read_bytes() == b"data"
    assert not (tmp_path / ".log.dat").exists()


def test_unhide_file_replaces_existing(tmp_path):
    _write(tmp_path / ".log.dat", b"new")
    _write(tmp_path / "log.dat", b"old")
    assert unhide_file(tmp_path, ".log.dat") is True
    assert (tmp_path / "log.dat").read_bytes() == b"new"


def test_unhide_file_rejects_visible_and_missing(tmp_path):
    _write(tmp_path / "log.dat")
    assert unhide_file(tmp_path, "log.dat") is False
    assert unhide_file(tmp_path, ".absent.dat") is False
    assert unhide_file(tmp_path, "") is False


def test_unhide_files_recursive(tmp_path):
    _write(tmp_path / ".a.dat")
    _write(tmp_path / "type_0" / ".b.dat")
    _write(tmp_path / "c.dat")
    renamed = unhide_files(tmp_path)
    assert sorted(renamed) == sorted(
        [os.path.join(tmp_path, "a.dat"), os.path.join(tmp_path / "type_0", "b.dat")]
    )
    assert (tmp_path / "a.dat").exists()
    assert (tmp_path / "type_0" / "b.dat").exists()
    assert (tmp_path / "c.dat").exists()


def test_unhide_files_empty_path():
    with pytest.raises(ValueError):
        unhide_files("")


def test_unhide_files_missing_dir(tmp_path):
    with pytest.raises(OSError):
        unhide_files(tmp_path / "missing")


def test_delete_hidden_files(tmp_path):
    _write(tmp_path / ".a.dat")
    _write(tmp_path / "sub" / ".b.dat")
    _write(tmp_path / "keep.dat")
    removed = delete_hidden_files(tmp_path)
    assert len(removed) == 2
    assert not (tmp_path / ".a.dat").exists()
    assert not (tmp_path / "sub" / ".b.dat").exists()
    assert (tmp_path / "keep.dat").exists()


def test_make_directory(tmp_path):
    target = tmp_path / "lidar_log"
    assert make_directory(target) is True
    assert target.is_dir()
    assert make_directory(target) is False


def test_make_directory_missing_parent(tmp_path):
    with pytest.raises(OSError):
        make_directory(tmp_path / "no" / "such")