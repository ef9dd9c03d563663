import json
from pathlib import Path

import pytest

from sitepress.config import Settings

PAGE_NAMES = ("index", "about", "contact", "news")

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="{{ lang }}">
<head><link rel="stylesheet" href="/css/style.css"></head>
<body>
{% include "header.jinja" %}
<h1>__NAME__</h1>
</body>
</html>
"""

SITE_DATA = {
    "title": {"ja": "スパイン", "en": "Spine Clinic", "zh": "脊椎诊所"},
    "nav": [{"href": "/about", "label": {"ja": "概要", "en": "About", "zh": "关于"}}],
}


def write_page(pages_dir: Path, name: str, body: str = None) -> Path:
    path = pages_dir / f"{name}.jinja"
    path.write_text(body if body is not None else PAGE_TEMPLATE.replace("__NAME__", name), encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path):
    """A small but complete site source tree."""
    src = tmp_path / "src"
    pages = src / "pages"
    pages.mkdir(parents=True)
    for name in PAGE_NAMES:
        write_page(pages, name)

    components = src / "components"
    components.mkdir()
    (components / "header.jinja").write_text(
        "<header>{{ site.title[lang] }}</header>\n", encoding="utf-8"
    )

    scss = src / "assets" / "scss"
    scss.mkdir(parents=True)
    (scss / "style.scss").write_text("$accent: #336699;\nbody { color: $accent; }\n")

    js = src / "assets" / "js"
    js.mkdir()
    (js / "main.js").write_text("console.log('main');\n")

    images = src / "assets" / "images"
    images.mkdir()
    (images / "logo.png").write_bytes(b"\x89PNG\r\n")

    data = tmp_path / "data"
    data.mkdir()
    (data / "site.json").write_text(json.dumps(SITE_DATA, ensure_ascii=False), encoding="utf-8")

    (tmp_path / "robots.txt").write_text("User-agent: *\n")
    return tmp_path


@pytest.fixture
def settings(project):
    return Settings(root=project)


@pytest.fixture
def pages_dir(project):
    return project / "src" / "pages"


@pytest.fixture
def add_page(pages_dir):
    """Write (or overwrite) a page template in the project."""

    def _add(name: str, body: str = None) -> Path:
        return write_page(pages_dir, name, body)

    return _add
