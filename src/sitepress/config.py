"""Configuration loading for sitepress.

Two kinds of configuration live here:

- project settings, read from an optional ``sitepress.config.py`` file whose
  uppercase names override the defaults of :class:`Settings`;
- the site data document (``data/site.json``), read once per build or per
  dev-server start and frozen so renders can share it safely.
"""

import importlib.util
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from sitepress import __version__
from sitepress.exceptions import ConfigLoadError, SettingsError
from sitepress.locales import DEFAULT_LOCALE, DEFAULT_LOCALES, LocaleSet

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "sitepress.config.py"

SiteConfig = Mapping[str, Any]

# Uppercase config names -> Settings field names
_SETTING_NAMES = {
    "SRC_DIR": "src_dir",
    "DATA_FILE": "data_file",
    "DIST_DIR": "dist_dir",
    "PUBLIC_DIR": "public_dir",
    "LOCALES": "locales",
    "DEFAULT_LOCALE": "default_locale",
    "VERSION": "version",
    "HOST": "host",
    "PORT": "port",
}


@dataclass
class Settings:
    """Project layout and server options."""

    root: Path = field(default_factory=Path.cwd)
    src_dir: Path = Path("src")
    data_file: Path = Path("data/site.json")
    dist_dir: Path = Path("dist")
    public_dir: Path = Path("public")
    locales: Tuple[str, ...] = DEFAULT_LOCALES
    default_locale: str = DEFAULT_LOCALE
    version: str = __version__
    host: str = "127.0.0.1"
    port: int = 3000
    locale_set: LocaleSet = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.root = Path(self.root).resolve()
        for name in ("src_dir", "data_file", "dist_dir", "public_dir"):
            value = Path(getattr(self, name))
            if not value.is_absolute():
                value = self.root / value
            setattr(self, name, value)
        self.locales = tuple(self.locales)
        self.port = int(self.port)
        # Validates eagerly so a bad config fails before any stage runs
        self.locale_set = LocaleSet(self.locales, self.default_locale)

    @property
    def data_dir(self) -> Path:
        return self.data_file.parent

    @property
    def pages_dir(self) -> Path:
        return self.src_dir / "pages"

    @property
    def components_dir(self) -> Path:
        return self.src_dir / "components"

    @property
    def styles_dir(self) -> Path:
        return self.src_dir / "assets" / "scss"

    @property
    def style_entry(self) -> Path:
        return self.styles_dir / "style.scss"

    @property
    def scripts_dir(self) -> Path:
        return self.src_dir / "assets" / "js"

    @property
    def images_dir(self) -> Path:
        return self.src_dir / "assets" / "images"


def _read_config_module(path: Path) -> Dict[str, Any]:
    """Execute a config file and return its uppercase names."""
    spec = importlib.util.spec_from_file_location("sitepress_config", path)
    if spec is None or spec.loader is None:
        return {}

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    return {key: getattr(module, key) for key in dir(module) if key.isupper()}


def load_settings(root: Path | str | None = None, path: Path | str | None = None) -> Settings:
    """
    Load project settings.

    If path is provided, loads from there.
    Otherwise, looks for sitepress.config.py in the project root (defaults to
    the current working directory).

    A config file that fails to execute is logged and ignored. Invalid
    values (e.g. a default locale that is not in LOCALES) raise SettingsError.
    """
    root = Path(root) if root is not None else Path.cwd()
    path = Path(path) if path is not None else root / DEFAULT_CONFIG_FILENAME

    overrides: Dict[str, Any] = {}
    if path.exists():
        try:
            raw = _read_config_module(path)
        except Exception as e:
            logger.warning("Failed to load config from %s: %s", path, e)
            raw = {}

        for key, name in _SETTING_NAMES.items():
            if key in raw:
                overrides[name] = raw[key]

    if "port" not in overrides and os.environ.get("PORT"):
        overrides["port"] = os.environ["PORT"]

    try:
        return Settings(root=root, **overrides)
    except (TypeError, ValueError) as e:
        raise SettingsError(f"Invalid settings: {e}", path=str(path)) from e


def freeze(value: Any) -> Any:
    """Return a read-only deep copy of a decoded JSON value."""
    if isinstance(value, dict):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(freeze(item) for item in value)
    return value


def read_site_config(path: Path) -> SiteConfig:
    """Read and freeze the site data file, raising ConfigLoadError on failure."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(f"Could not read site data: {e}", path=str(path)) from e

    # Editors on Windows like to save with a BOM
    text = text.removeprefix("\ufeff")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Malformed JSON: {e}", path=str(path)) from e

    if not isinstance(data, dict):
        raise ConfigLoadError("Site data must be a JSON object", path=str(path))

    return freeze(data)


def load_site_config(path: Path) -> SiteConfig:
    """Load the site data file, degrading to an empty config on any failure."""
    try:
        return read_site_config(path)
    except ConfigLoadError as e:
        logger.warning("Error loading site data, using empty config: %s", e)
        return MappingProxyType({})
