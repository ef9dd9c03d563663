"""Sitepress exceptions."""

from typing import Optional


class SitepressError(Exception):
    """Base class for every error raised by sitepress."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = str(path) if path is not None else None
        super().__init__(message)

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class SettingsError(SitepressError):
    """Raised when project settings are invalid."""


class ConfigLoadError(SitepressError):
    """Raised when the site data file cannot be read or parsed."""


class LockContentionError(SitepressError):
    """Raised when a file system operation hits a lock held elsewhere."""

    def __init__(self, message: str, path: Optional[str] = None, attempt: int = 0):
        self.attempt = attempt
        super().__init__(message, path)


class BuildDirectoryError(SitepressError):
    """Raised when the output directory cannot be prepared."""


class RenderError(SitepressError):
    """Raised when a page template fails to render."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        template: Optional[str] = None,
        locale: Optional[str] = None,
    ):
        self.template = template
        self.locale = locale
        super().__init__(message, path)


class CompileError(SitepressError):
    """Raised when the stylesheet fails to compile."""


class CopyError(SitepressError):
    """Raised when a required asset tree cannot be copied."""


class BuildError(SitepressError):
    """Raised by the build coordinator when a stage fails fatally."""

    def __init__(self, stage: str, cause: SitepressError):
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} failed: {cause}")
