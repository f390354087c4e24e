import os

import pytest

from livoxkit.retention import (
    MAX_EXCEPTION_LOG_CACHE_MB,
    MIB,
    CacheLimits,
    RetentionWorker,
    compute_cache_limits,
    prepare_log_root,
    prune_directory,
)


def _make_logs(directory, count, size):
    directory.mkdir(parents=True, exist_ok=True)
    names = []
    for i in range(count):
        name = f"2024-01-0{i + 1}_00-00-00_SN0000TEST_0_{i}.dat"
        (directory / name).write_bytes(b"x" * size)
        names.append(name)
    return names


def _size(directory):
    return sum(p.stat().st_size for p in directory.iterdir())


@pytest.mark.parametrize("size", [0, 1_000_000_001])
def test_disabled_sizes(size):
    assert compute_cache_limits(size) is None


@pytest.mark.parametrize("size", [4, 100, 800])
def test_small_cache_split_by_ratio(size):
    limits = compute_cache_limits(size)
    assert limits.realtime_bytes == 3 * limits.exception_bytes
    assert limits.realtime_bytes + limits.exception_bytes == size * MIB


@pytest.mark.parametrize("size", [801, 5000])
def test_large_cache_caps_exception_logs(size):
    limits = compute_cache_limits(size)
    assert limits.exception_bytes == MAX_EXCEPTION_LOG_CACHE_MB * MIB
    assert limits.realtime_bytes + limits.exception_bytes == size * MIB


def test_prepare_log_root_creates_dir(tmp_path):
    root = prepare_log_root(tmp_path)
    assert root.endswith("lidar_log/")
    assert os.path.isdir(root)
    assert prepare_log_root(tmp_path) == root


def test_prepare_log_root_unhides_files(tmp_path):
    (tmp_path / ".old.dat").write_bytes(b"abc")
    prepare_log_root(tmp_path)
    assert (tmp_path / "old.dat").read_bytes() == b"abc"
    assert not (tmp_path / ".old.dat").exists()


def test_prepare_log_root_missing_parent(tmp_path):
    with pytest.raises(OSError):
        prepare_log_root(tmp_path / "missing" / "deeper")


def test_prune_removes_oldest_first(tmp_path):
    names = _make_logs(tmp_path / "logs", 4, 10)
    removed = prune_directory(tmp_path / "logs", 25)
    assert removed == names[:2]
    assert sorted(os.listdir(tmp_path / "logs")) == names[2:]
    assert _size(tmp_path / "logs") <= 25


def test_prune_under_limit_keeps_everything(tmp_path):
    names = _make_logs(tmp_path / "logs", 3, 10)
    assert prune_directory(tmp_path / "logs", 30) == []
    assert sorted(os.listdir(tmp_path / "logs")) == names


def test_prune_missing_directory(tmp_path):
    assert prune_directory(tmp_path / "absent", 0) == []


def test_worker_prunes_on_stop(tmp_path):
    realtime = tmp_path / "type_0"
    exception = tmp_path / "type_1"
    _make_logs(realtime, 5, 10)
    exc_names = _make_logs(exception, 3, 10)
    worker = RetentionWorker(tmp_path, CacheLimits(realtime_bytes=20, exception_bytes=100))
    worker.start()
    worker.trigger()
    worker.stop()
    assert _size(realtime) <= 20
    assert sorted(os.listdir(exception)) == exc_names


def test_worker_context_manager(tmp_path):
    realtime = tmp_path / "type_0"
    names = _make_logs(realtime, 4, 10)
    with RetentionWorker(str(tmp_path) + "/", CacheLimits(10, 10), interval=0.01):
        pass
    assert os.listdir(realtime) == [names[-1]]