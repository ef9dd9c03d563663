"""Asset synchronization and build metadata."""

import json
import logging
import platform
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

from sitepress.exceptions import CopyError

logger = logging.getLogger(__name__)

SCRIPT_EXTENSION = ".js"

# Copied from the project root when present; purely cosmetic
STATIC_FILES = ("favicon.ico", "robots.txt", "sitemap.xml")

BUILD_INFO_FILENAME = "build-info.json"


def copy_optional_tree(src: Path, dest: Path, label: str) -> bool:
    """Copy a directory tree verbatim if it exists.

    Returns False (and logs a warning) when src is missing. A present tree
    that fails to copy raises CopyError.
    """
    src = Path(src)
    if not src.is_dir():
        logger.warning("No %s directory found at %s, skipping", label, src)
        return False

    try:
        shutil.copytree(src, dest, dirs_exist_ok=True)
    except (OSError, shutil.Error) as e:
        raise CopyError(f"Error copying {label}: {e}", path=str(src)) from e

    logger.info("%s copied to %s", label.capitalize(), dest)
    return True


def sync_scripts(src: Path, dest: Path) -> List[Path]:
    """Copy the top-level script files of src into dest.

    Used by the dev server, where dest is shared with files the build does
    not own, so the tree is never replaced wholesale.
    """
    src = Path(src)
    dest = Path(dest)
    copied = []
    try:
        dest.mkdir(parents=True, exist_ok=True)
        for path in sorted(src.iterdir()):
            if path.is_file() and path.suffix == SCRIPT_EXTENSION:
                copied.append(Path(shutil.copy2(path, dest / path.name)))
    except OSError as e:
        raise CopyError(f"JavaScript copy error: {e}", path=str(src)) from e

    logger.info("JavaScript files copied (%d)", len(copied))
    return copied


def copy_static_files(root: Path, dest: Path, names: Iterable[str] = STATIC_FILES) -> List[str]:
    """Copy whichever of the root-level static files exist. Never raises."""
    copied = []
    for name in names:
        src = Path(root) / name
        if not src.is_file():
            continue
        try:
            shutil.copy2(src, Path(dest) / name)
        except OSError as e:
            logger.warning("Error copying %s: %s", name, e)
            continue
        logger.info("Copied %s", name)
        copied.append(name)
    return copied


def write_build_info(dest: Path, version: str) -> Path:
    info = {
        "buildDate": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
        "version": version,
        "pythonVersion": platform.python_version(),
    }
    target = Path(dest) / BUILD_INFO_FILENAME
    target.write_text(json.dumps(info, indent=2) + "\n", encoding="utf-8")
    logger.info("Build info generated")
    return target
