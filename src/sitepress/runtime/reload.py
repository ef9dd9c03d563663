"""Change classification for live reload.

A changed path maps to exactly one reload action, first match wins:

1. stylesheet sources (the scss tree, or any .scss/.sass file) -> css-reload
2. scripts under the client script tree                       -> js-reload
3. templates and JSON data                                    -> page-reload
4. anything else                                              -> page-reload

Falling through to a full page reload is deliberate: a needless reload is
cheaper than a stale view.
"""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional, Tuple

from sitepress.build.assets import SCRIPT_EXTENSION, copy_optional_tree, sync_scripts
from sitepress.build.render import TEMPLATE_EXTENSION
from sitepress.build.styles import PREPROCESSOR_EXTENSIONS, compile_stylesheet
from sitepress.config import Settings
from sitepress.exceptions import CompileError, CopyError

logger = logging.getLogger(__name__)

CONFIG_EXTENSION = ".json"


class ReloadEvent(enum.Enum):
    CSS_RELOAD = "css-reload"
    JS_RELOAD = "js-reload"
    PAGE_RELOAD = "page-reload"


def _parts(path: object) -> Tuple[str, ...]:
    """Split a path into segments regardless of separator style or anchor."""
    parts = PurePosixPath(str(path).replace("\\", "/")).parts
    if parts and parts[0] == "/":
        parts = parts[1:]
    return parts


def _contains(parts: Tuple[str, ...], tree: Tuple[str, ...]) -> bool:
    if not tree:
        return False
    size = len(tree)
    return any(parts[i : i + size] == tree for i in range(len(parts) - size + 1))


@dataclass(frozen=True)
class WatchLayout:
    """Source trees the classifier recognizes, as path segments."""

    styles_tree: Tuple[str, ...] = ("src", "assets", "scss")
    scripts_tree: Tuple[str, ...] = ("src", "assets", "js")
    images_tree: Tuple[str, ...] = ("src", "assets", "images")

    @classmethod
    def from_settings(cls, settings: Settings) -> "WatchLayout":
        def relative(path: Path) -> Tuple[str, ...]:
            try:
                return _parts(path.relative_to(settings.root).as_posix())
            except ValueError:
                return _parts(path.as_posix())

        return cls(
            styles_tree=relative(settings.styles_dir),
            scripts_tree=relative(settings.scripts_dir),
            images_tree=relative(settings.images_dir),
        )


DEFAULT_LAYOUT = WatchLayout()


def classify(path: object, layout: WatchLayout = DEFAULT_LAYOUT) -> ReloadEvent:
    """Decide which reload a change to path calls for. Total and side-effect free."""
    parts = _parts(path)
    name = parts[-1].lower() if parts else ""
    suffix = PurePosixPath(name).suffix

    if _contains(parts, layout.styles_tree) or suffix in PREPROCESSOR_EXTENSIONS:
        return ReloadEvent.CSS_RELOAD

    if _contains(parts, layout.scripts_tree) and suffix == SCRIPT_EXTENSION:
        return ReloadEvent.JS_RELOAD

    if suffix in (TEMPLATE_EXTENSION, CONFIG_EXTENSION):
        return ReloadEvent.PAGE_RELOAD

    return ReloadEvent.PAGE_RELOAD


class LiveReloader:
    """Performs the server-side work behind each reload event.

    Failures are logged and swallow the event: the previous CSS or scripts
    stay in place and no browser is told to reload into a broken state.
    """

    def __init__(self, settings: Settings, layout: Optional[WatchLayout] = None) -> None:
        self.settings = settings
        self.layout = layout or WatchLayout.from_settings(settings)

    @property
    def stylesheet_output(self) -> Path:
        return self.settings.public_dir / "css" / "style.css"

    @property
    def scripts_output(self) -> Path:
        return self.settings.public_dir / "js"

    @property
    def images_output(self) -> Path:
        return self.settings.public_dir / "images"

    def compile_styles(self) -> bool:
        try:
            compile_stylesheet(self.settings.style_entry, self.stylesheet_output)
        except CompileError as e:
            logger.error("SCSS compilation error: %s", e)
            return False
        return True

    def copy_scripts(self) -> bool:
        try:
            sync_scripts(self.settings.scripts_dir, self.scripts_output)
        except CopyError as e:
            logger.error("JavaScript copy error: %s", e)
            return False
        return True

    def copy_images(self) -> bool:
        try:
            copy_optional_tree(self.settings.images_dir, self.images_output, "images")
        except CopyError as e:
            logger.error("%s", e)
            return False
        return True

    def initial_sync(self) -> None:
        """Bring the public directory up to date before serving."""
        self.compile_styles()
        self.copy_scripts()
        self.copy_images()

    def handle_change(self, path: object) -> Optional[ReloadEvent]:
        """Classify a change, do the matching work, return the event to send."""
        event = classify(path, self.layout)
        logger.info("File changed: %s", path)

        if event is ReloadEvent.CSS_RELOAD:
            logger.info("SCSS file detected - compiling CSS")
            if not self.compile_styles():
                return None
        elif event is ReloadEvent.JS_RELOAD:
            logger.info("JavaScript file detected - copying files")
            if not self.copy_scripts():
                return None
        else:
            if _contains(_parts(path), self.layout.images_tree):
                # Served from the public directory in dev, like css and js
                if not self.copy_images():
                    return None
            logger.info("Reloading page")

        return event
