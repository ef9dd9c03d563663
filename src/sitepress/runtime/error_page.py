import html

from starlette.responses import HTMLResponse

from sitepress.runtime.livereload import inject_reload_script


class ErrorPage:
    """Page shown by the dev server when a page fails to render."""

    def __init__(self, error_title: str, error_detail: str):
        self.error_title = error_title
        self.error_detail = error_detail

    def render(self, status_code: int = 500) -> HTMLResponse:
        """Render the error page.

        Carries the live-reload script so the browser picks up the fix on
        the next change without a manual refresh.
        """
        title = html.escape(self.error_title)
        content = f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title} - sitepress</title>
<style>
  body {{ margin: 0; font: 15px/1.5 ui-monospace, Menlo, Consolas, monospace; background: #1e1f24; color: #e6e6e6; }}
  header {{ padding: 1rem 1.5rem; background: #8b1e2d; color: #fff; }}
  main {{ padding: 1.5rem; }}
  pre {{ margin: 0; white-space: pre-wrap; word-break: break-word; }}
</style>
</head>
<body>
<header><strong>{title}</strong></header>
<main><pre>{html.escape(self.error_detail)}</pre></main>
</body>
</html>
"""
        return HTMLResponse(inject_reload_script(content), status_code=status_code)
