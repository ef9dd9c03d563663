"""Build directory lifecycle.

The output directory is removed and recreated before every build. Another
process (an editor, a preview server, a virus scanner) may be holding a handle
inside it, so removal is retried with a linear backoff and, as a last resort,
the directory is kept and only its contents are erased.

    ATTEMPTING -> SUCCESS
    ATTEMPTING -> RETRYING -> ATTEMPTING       (lock-class error, attempts left)
    ATTEMPTING -> FALLBACK -> SUCCESS | FATAL  (lock-class error, attempts spent)
    ATTEMPTING -> FATAL                        (any other error)
"""

import enum
import errno
import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from sitepress.exceptions import BuildDirectoryError, LockContentionError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5
BACKOFF_STEP = 0.2  # seconds, multiplied by the attempt number

# errno values that mean "someone else has it open", not "this path is wrong"
LOCK_ERRNOS = frozenset({errno.EACCES, errno.EPERM, errno.EBUSY, errno.ENOTEMPTY, errno.EEXIST})
# ERROR_ACCESS_DENIED, ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
LOCK_WINERRORS = frozenset({5, 32, 33})


class LifecycleState(enum.Enum):
    ATTEMPTING = "attempting"
    RETRYING = "retrying"
    FALLBACK = "fallback"
    SUCCESS = "success"
    FATAL = "fatal"


TERMINAL_STATES = frozenset({LifecycleState.SUCCESS, LifecycleState.FATAL})


class BuildDirectoryState(enum.Enum):
    ABSENT = "absent"
    PRESENT_CLEAN = "present-clean"
    PRESENT_LOCKED = "present-locked"


class ErrorClass(enum.Enum):
    LOCK = "lock"
    FATAL = "fatal"


def classify_os_error(exc: BaseException) -> ErrorClass:
    """Decide whether a failure is worth retrying."""
    if isinstance(exc, PermissionError):
        return ErrorClass.LOCK
    if isinstance(exc, OSError):
        if getattr(exc, "winerror", None) in LOCK_WINERRORS:
            return ErrorClass.LOCK
        if exc.errno in LOCK_ERRNOS:
            return ErrorClass.LOCK
    return ErrorClass.FATAL


def backoff_delay(attempt: int, step: float = BACKOFF_STEP) -> float:
    """Linear backoff: 200ms after the first failure, 400ms after the second..."""
    return step * attempt


def inspect_build_dir(path: Path) -> BuildDirectoryState:
    path = Path(path)
    if not path.exists():
        return BuildDirectoryState.ABSENT
    if not os.access(path, os.W_OK | os.X_OK):
        return BuildDirectoryState.PRESENT_LOCKED
    return BuildDirectoryState.PRESENT_CLEAN


@dataclass
class PrepareResult:
    """Outcome of a successful prepare."""

    path: Path
    attempts: int
    used_fallback: bool = False
    history: List[LifecycleState] = field(default_factory=list)


class BuildDirectoryManager:
    """Owns creation and destruction of the build output directory."""

    def __init__(
        self,
        path: Path,
        attempts: int = MAX_ATTEMPTS,
        backoff_step: float = BACKOFF_STEP,
        sleep: Callable[[float], None] = time.sleep,
        remove: Callable[[Path], None] = shutil.rmtree,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.path = Path(path)
        self.attempts = attempts
        self.backoff_step = backoff_step
        self.sleep = sleep
        self.remove = remove

    def _recreate(self) -> None:
        if self.path.exists() or self.path.is_symlink():
            self.remove(self.path)
        self.path.mkdir(parents=True)

    def _erase_contents(self) -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        for child in self.path.iterdir():
            if child.is_dir() and not child.is_symlink():
                self.remove(child)
            else:
                child.unlink()

    def prepare(self) -> PrepareResult:
        """Guarantee the directory exists and is empty.

        Raises BuildDirectoryError when neither the retries nor the in-place
        fallback manage it.
        """
        logger.debug("Preparing %s (%s)", self.path, inspect_build_dir(self.path).value)

        state = LifecycleState.ATTEMPTING
        history: List[LifecycleState] = []
        attempt = 0
        used_fallback = False
        error: Optional[BaseException] = None

        while state not in TERMINAL_STATES:
            history.append(state)

            if state is LifecycleState.ATTEMPTING:
                attempt += 1
                try:
                    self._recreate()
                    state = LifecycleState.SUCCESS
                except OSError as e:
                    if classify_os_error(e) is ErrorClass.FATAL:
                        error = e
                        state = LifecycleState.FATAL
                    else:
                        error = LockContentionError(str(e), path=str(self.path), attempt=attempt)
                        error.__cause__ = e
                        if attempt < self.attempts:
                            state = LifecycleState.RETRYING
                        else:
                            state = LifecycleState.FALLBACK

            elif state is LifecycleState.RETRYING:
                delay = backoff_delay(attempt, self.backoff_step)
                logger.warning(
                    "Build directory locked (attempt %d/%d), retrying in %.1fs: %s",
                    attempt,
                    self.attempts,
                    delay,
                    error,
                )
                self.sleep(delay)
                state = LifecycleState.ATTEMPTING

            elif state is LifecycleState.FALLBACK:
                logger.warning(
                    "Could not recreate %s after %d attempts, erasing contents in place",
                    self.path,
                    attempt,
                )
                used_fallback = True
                try:
                    self._erase_contents()
                    state = LifecycleState.SUCCESS
                except OSError as e:
                    error = e
                    state = LifecycleState.FATAL

        history.append(state)

        if state is LifecycleState.FATAL:
            raise BuildDirectoryError(
                f"Could not prepare build directory: {error}", path=str(self.path)
            ) from error

        logger.debug("Build directory ready after %d attempt(s)", attempt)
        return PrepareResult(
            path=self.path, attempts=attempt, used_fallback=used_fallback, history=history
        )


def prepare_build_dir(path: Path, **kwargs) -> PrepareResult:
    """Shortcut for ``BuildDirectoryManager(path, **kwargs).prepare()``."""
    return BuildDirectoryManager(path, **kwargs).prepare()
