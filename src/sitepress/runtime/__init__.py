"""Dev server runtime."""

from sitepress.runtime.app import DevSite, create_app
from sitepress.runtime.livereload import ReloadBroadcaster
from sitepress.runtime.reload import LiveReloader, ReloadEvent, classify

__all__ = ["DevSite", "create_app", "ReloadBroadcaster", "LiveReloader", "ReloadEvent", "classify"]
