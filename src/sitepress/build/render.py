"""Multi-locale page rendering."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from jinja2 import ChainableUndefined, Environment, FileSystemLoader, select_autoescape

from sitepress.config import SiteConfig
from sitepress.exceptions import RenderError
from sitepress.locales import Locale

logger = logging.getLogger(__name__)

TEMPLATE_EXTENSION = ".jinja"


@dataclass(frozen=True)
class PageTemplate:
    """A page source file; one template renders once per locale."""

    name: str
    path: Path

    @property
    def template_name(self) -> str:
        """Name relative to the loader search path."""
        return self.path.name

    @classmethod
    def from_path(cls, path: Path) -> "PageTemplate":
        return cls(name=path.name[: -len(TEMPLATE_EXTENSION)], path=path)


@dataclass(frozen=True)
class RenderedOutput:
    template: PageTemplate
    locale: Locale
    filename: str


def output_filename(template: PageTemplate, locale: Locale) -> str:
    return f"{template.name}{locale.suffix}.html"


def discover_templates(pages_dir: Path) -> List[PageTemplate]:
    """Find every page template directly inside pages_dir."""
    pages_dir = Path(pages_dir)
    if not pages_dir.is_dir():
        raise RenderError("Pages directory not found", path=str(pages_dir))

    return [
        PageTemplate.from_path(p)
        for p in sorted(pages_dir.iterdir())
        if p.is_file() and p.name.endswith(TEMPLATE_EXTENSION)
    ]


def create_environment(pages_dir: Path, components_dir: Path) -> Environment:
    """Jinja environment that resolves pages first, then shared components.

    Missing config fields render as empty strings, even when chained
    (``site.title[lang]`` with no ``title``).
    """
    return Environment(
        loader=FileSystemLoader([str(pages_dir), str(components_dir)]),
        autoescape=select_autoescape(
            enabled_extensions=("html", "jinja"), default_for_string=True
        ),
        undefined=ChainableUndefined,
        keep_trailing_newline=True,
    )


def plan_outputs(
    templates: Iterable[PageTemplate], locales: Iterable[Locale]
) -> List[RenderedOutput]:
    """Map every (template, locale) pair to its output file name.

    Raises RenderError if two pairs would write the same file, e.g. a page
    called ``about-en`` next to ``about`` rendered in ``en``.
    """
    locales = list(locales)
    outputs: List[RenderedOutput] = []
    claimed: Dict[str, RenderedOutput] = {}

    for template in templates:
        for locale in locales:
            output = RenderedOutput(template, locale, output_filename(template, locale))
            previous = claimed.get(output.filename)
            if previous is not None:
                raise RenderError(
                    f"Output {output.filename} is produced by both "
                    f"{previous.template.name} ({previous.locale.code}) and "
                    f"{template.name} ({locale.code})",
                    path=str(template.path),
                    template=template.name,
                    locale=locale.code,
                )
            claimed[output.filename] = output
            outputs.append(output)

    return outputs


def render_page(env: Environment, template: PageTemplate, locale: Locale, site: SiteConfig) -> str:
    """Render one page in one locale.

    The context is exactly ``site`` and ``lang``; templates do their own
    localization by looking up strings for ``lang`` in ``site``.
    """
    try:
        return env.get_template(template.template_name).render(site=site, lang=locale.code)
    except Exception as e:
        raise RenderError(
            f"Failed to render {template.name} [{locale.code}]: {e}",
            path=str(template.path),
            template=template.name,
            locale=locale.code,
        ) from e


def render_site(
    env: Environment,
    templates: Sequence[PageTemplate],
    locales: Iterable[Locale],
    site: SiteConfig,
    output_dir: Path,
) -> List[RenderedOutput]:
    """Render every template in every locale into output_dir.

    The first failure aborts the whole run; a partially rendered site is
    never reported as a success.
    """
    output_dir = Path(output_dir)
    outputs = plan_outputs(templates, locales)

    for output in outputs:
        html = render_page(env, output.template, output.locale, site)
        target = output_dir / output.filename
        try:
            target.write_text(html, encoding="utf-8")
        except OSError as e:
            raise RenderError(
                f"Could not write {output.filename}: {e}",
                path=str(target),
                template=output.template.name,
                locale=output.locale.code,
            ) from e
        logger.info("Compiled %s [%s] -> %s", output.template.path.name, output.locale.code, output.filename)

    return outputs
