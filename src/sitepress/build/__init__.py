"""Build pipeline."""

from sitepress.build.coordinator import BuildReport, build_site
from sitepress.build.lifecycle import BuildDirectoryManager, prepare_build_dir

__all__ = ["BuildReport", "build_site", "BuildDirectoryManager", "prepare_build_dir"]
