import errno
import shutil

import pytest

from sitepress.build.lifecycle import (
    BuildDirectoryManager,
    BuildDirectoryState,
    ErrorClass,
    LifecycleState,
    backoff_delay,
    classify_os_error,
    inspect_build_dir,
    prepare_build_dir,
)
from sitepress.exceptions import BuildDirectoryError, LockContentionError


def locked(path):
    return PermissionError(errno.EACCES, "Permission denied", str(path))


class FlakyRemove:
    """rmtree that fails with a lock error for the first `failures` calls on `target`."""

    def __init__(self, target, failures, error=locked):
        self.target = target
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self, path):
        if path == self.target:
            self.calls += 1
            if self.failures is None or self.calls <= self.failures:
                raise self.error(path)
        shutil.rmtree(path)


@pytest.fixture
def dist(tmp_path):
    return tmp_path / "dist"


def test_absent_directory_first_attempt(dist):
    sleeps = []
    result = prepare_build_dir(dist, sleep=sleeps.append)

    assert dist.is_dir()
    assert list(dist.iterdir()) == []
    assert result.attempts == 1
    assert not result.used_fallback
    assert result.history == [LifecycleState.ATTEMPTING, LifecycleState.SUCCESS]
    assert sleeps == []


def test_existing_directory_is_emptied(dist):
    (dist / "css").mkdir(parents=True)
    (dist / "css" / "old.css").write_text("x")
    (dist / "index.html").write_text("old")

    prepare_build_dir(dist, sleep=lambda _: None)

    assert dist.is_dir()
    assert list(dist.iterdir()) == []


def test_lock_then_success_on_third_attempt(dist):
    dist.mkdir()
    (dist / "stale.html").write_text("old")
    remove = FlakyRemove(dist, failures=2)
    sleeps = []

    result = prepare_build_dir(dist, remove=remove, sleep=sleeps.append)

    assert result.attempts == 3
    assert not result.used_fallback
    assert sleeps == [pytest.approx(0.2), pytest.approx(0.4)]
    assert result.history == [
        LifecycleState.ATTEMPTING,
        LifecycleState.RETRYING,
        LifecycleState.ATTEMPTING,
        LifecycleState.RETRYING,
        LifecycleState.ATTEMPTING,
        LifecycleState.SUCCESS,
    ]
    assert list(dist.iterdir()) == []


def test_exhausted_retries_fall_back_to_erasing_contents(dist):
    (dist / "images").mkdir(parents=True)
    (dist / "images" / "a.png").write_bytes(b"x")
    (dist / "index.html").write_text("old")
    remove = FlakyRemove(dist, failures=None)
    sleeps = []

    result = prepare_build_dir(dist, remove=remove, sleep=sleeps.append)

    assert remove.calls == 5
    assert result.attempts == 5
    assert result.used_fallback
    assert result.history[-2:] == [LifecycleState.FALLBACK, LifecycleState.SUCCESS]
    assert sleeps == [pytest.approx(d) for d in (0.2, 0.4, 0.6, 0.8)]
    assert dist.is_dir()
    assert list(dist.iterdir()) == []


def test_fallback_failure_is_fatal(dist):
    (dist / "js").mkdir(parents=True)

    def always_locked(path):
        raise locked(path)

    with pytest.raises(BuildDirectoryError) as excinfo:
        prepare_build_dir(dist, remove=always_locked, sleep=lambda _: None)

    assert "Could not prepare build directory" in str(excinfo.value)


def test_non_lock_error_is_fatal_immediately(dist):
    dist.mkdir()
    remove = FlakyRemove(
        dist, failures=None, error=lambda p: OSError(errno.ENAMETOOLONG, "File name too long", str(p))
    )
    sleeps = []

    with pytest.raises(BuildDirectoryError) as excinfo:
        prepare_build_dir(dist, remove=remove, sleep=sleeps.append)

    assert remove.calls == 1
    assert sleeps == []
    assert isinstance(excinfo.value.__cause__, OSError)
    assert not isinstance(excinfo.value.__cause__, LockContentionError)


def test_attempts_must_be_positive(dist):
    with pytest.raises(ValueError):
        BuildDirectoryManager(dist, attempts=0)


@pytest.mark.parametrize(
    "exc, expected",
    [
        (PermissionError(errno.EACCES, "denied"), ErrorClass.LOCK),
        (OSError(errno.EBUSY, "busy"), ErrorClass.LOCK),
        (OSError(errno.ENOTEMPTY, "not empty"), ErrorClass.LOCK),
        (FileNotFoundError(errno.ENOENT, "missing"), ErrorClass.FATAL),
        (NotADirectoryError(errno.ENOTDIR, "not a dir"), ErrorClass.FATAL),
        (ValueError("nope"), ErrorClass.FATAL),
    ],
)
def test_classify_os_error(exc, expected):
    assert classify_os_error(exc) is expected


def test_classify_windows_sharing_violation():
    exc = OSError(errno.EINVAL, "The process cannot access the file")
    exc.winerror = 32
    assert classify_os_error(exc) is ErrorClass.LOCK


def test_backoff_is_linear():
    assert [backoff_delay(n) for n in (1, 2, 3)] == [
        pytest.approx(0.2),
        pytest.approx(0.4),
        pytest.approx(0.6),
    ]


def test_inspect_build_dir(dist):
    assert inspect_build_dir(dist) is BuildDirectoryState.ABSENT
    dist.mkdir()
    assert inspect_build_dir(dist) is BuildDirectoryState.PRESENT_CLEAN
