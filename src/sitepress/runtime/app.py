"""Dev-mode ASGI application."""

import logging
from typing import Awaitable, Callable, List, Optional

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, Response
from starlette.routing import BaseRoute, Mount, Route, WebSocketRoute
from starlette.staticfiles import StaticFiles

from sitepress.build.render import TEMPLATE_EXTENSION, PageTemplate, create_environment, render_page
from sitepress.config import Settings, SiteConfig, load_site_config
from sitepress.exceptions import RenderError
from sitepress.locales import Locale
from sitepress.runtime.error_page import ErrorPage
from sitepress.runtime.livereload import RELOAD_PATH, ReloadBroadcaster, inject_reload_script

logger = logging.getLogger(__name__)

INDEX_PAGE = "index"
STATIC_MOUNTS = ("css", "js", "images")

# Segments that would leave the pages directory
RESERVED_NAMES = frozenset({"", ".", ".."})

Endpoint = Callable[[Request], Awaitable[Response]]


class DevSite:
    """Serves pages rendered on demand plus the live-reload channel.

    The site config is the snapshot passed in at start-up; it is never
    re-read per request.
    """

    def __init__(
        self,
        settings: Settings,
        site: SiteConfig,
        broadcaster: Optional[ReloadBroadcaster] = None,
    ) -> None:
        self.settings = settings
        self.site = site
        self.broadcaster = broadcaster or ReloadBroadcaster()
        self.env = create_environment(settings.pages_dir, settings.components_dir)

        self.app = Starlette(routes=self._build_routes())
        self.app.state.broadcaster = self.broadcaster
        self.app.state.dev_site = self

    def _build_routes(self) -> List[BaseRoute]:
        routes: List[BaseRoute] = [WebSocketRoute(RELOAD_PATH, self.broadcaster.handle)]

        for name in STATIC_MOUNTS:
            directory = self.settings.public_dir / name
            routes.append(
                Mount(f"/{name}", app=StaticFiles(directory=str(directory), check_dir=False), name=name)
            )

        # Prefixed locales first so '/en' is never taken for a page called 'en'
        for locale in sorted(self.settings.locale_set, key=lambda item: item.is_default):
            root = locale.prefix or "/"
            routes.append(Route(root, self._root_endpoint(locale), methods=["GET"]))
            routes.append(Route(f"{locale.prefix}/{{page}}", self._page_endpoint(locale), methods=["GET"]))

        return routes

    def _root_endpoint(self, locale: Locale) -> Endpoint:
        async def endpoint(request: Request) -> Response:
            return self.render(INDEX_PAGE, locale)

        return endpoint

    def _page_endpoint(self, locale: Locale) -> Endpoint:
        async def endpoint(request: Request) -> Response:
            return self.render(request.path_params["page"], locale)

        return endpoint

    def resolve_template(self, page: str) -> Optional[PageTemplate]:
        if page in RESERVED_NAMES or "\\" in page:
            return None
        path = self.settings.pages_dir / f"{page}{TEMPLATE_EXTENSION}"
        if not path.is_file():
            return None
        return PageTemplate.from_path(path)

    def render(self, page: str, locale: Locale) -> Response:
        template = self.resolve_template(page)
        if template is None:
            return PlainTextResponse("Page not found", status_code=404)

        try:
            body = render_page(self.env, template, locale, self.site)
        except RenderError as e:
            logger.error("%s", e)
            return ErrorPage("Render Error", str(e)).render(status_code=500)

        return HTMLResponse(inject_reload_script(body))


def create_app(
    settings: Settings,
    site: Optional[SiteConfig] = None,
    broadcaster: Optional[ReloadBroadcaster] = None,
) -> Starlette:
    """Create the dev ASGI app - used by uvicorn."""
    if site is None:
        site = load_site_config(settings.data_file)

    if not settings.pages_dir.exists():
        logger.warning("Pages directory '%s' does not exist", settings.pages_dir)

    return DevSite(settings, site, broadcaster=broadcaster).app
