"""One-shot production build."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from sitepress.build.assets import copy_optional_tree, copy_static_files, write_build_info
from sitepress.build.lifecycle import BuildDirectoryManager, PrepareResult
from sitepress.build.render import (
    RenderedOutput,
    create_environment,
    discover_templates,
    render_site,
)
from sitepress.build.styles import compile_stylesheet
from sitepress.config import Settings, SiteConfig, load_site_config
from sitepress.exceptions import BuildError, SitepressError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BuildReport:
    """What a successful build produced."""

    output_dir: Path
    directory: Optional[PrepareResult] = None
    pages: List[RenderedOutput] = field(default_factory=list)
    stylesheet: Optional[Path] = None
    copied_trees: List[str] = field(default_factory=list)
    static_files: List[str] = field(default_factory=list)
    build_info: Optional[Path] = None


def _stage(name: str, func: Callable[..., T], *args, **kwargs) -> T:
    try:
        return func(*args, **kwargs)
    except SitepressError as e:
        logger.error("%s failed: %s", name, e)
        raise BuildError(name, e) from e


def build_site(
    settings: Settings,
    site: Optional[SiteConfig] = None,
    directory_manager: Optional[BuildDirectoryManager] = None,
) -> BuildReport:
    """Run every build stage in order.

    Stages run strictly one after another: everything after the first one
    writes into the directory it prepares. Any fatal stage raises BuildError.
    """
    dist = settings.dist_dir
    report = BuildReport(output_dir=dist)

    if site is None:
        # A fresh snapshot per build; never reuse one from a previous run
        site = load_site_config(settings.data_file)

    manager = directory_manager or BuildDirectoryManager(dist)
    report.directory = _stage("Cleaning build directory", manager.prepare)
    logger.info("Build directory cleaned")

    env = create_environment(settings.pages_dir, settings.components_dir)
    templates = _stage("Discovering pages", discover_templates, settings.pages_dir)
    report.pages = _stage(
        "Rendering pages", render_site, env, templates, settings.locale_set, site, dist
    )

    report.stylesheet = _stage(
        "Compiling styles", compile_stylesheet, settings.style_entry, dist / "css" / "style.css"
    )

    if _stage("Copying JavaScript", copy_optional_tree, settings.scripts_dir, dist / "js", "JavaScript"):
        report.copied_trees.append("js")
    if _stage("Copying images", copy_optional_tree, settings.images_dir, dist / "images", "images"):
        report.copied_trees.append("images")

    report.static_files = copy_static_files(settings.root, dist)

    try:
        report.build_info = write_build_info(dist, settings.version)
    except OSError as e:
        # Metadata only; the site itself is complete
        logger.warning("Could not write build info: %s", e)

    return report
