"""Main CLI entry point."""
import sys
from pathlib import Path

import click

from sitepress import __version__
from sitepress.exceptions import SettingsError


def _load_settings():
    from sitepress.config import load_settings

    try:
        return load_settings(Path.cwd())
    except SettingsError as e:
        raise click.UsageError(str(e))


@click.group()
@click.version_option(version=__version__, prog_name="sitepress")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
def cli(verbose):
    """Sitepress CLI.

    Run 'sitepress build' to render the site into dist/.
    Run 'sitepress dev' to start the live-reload development server.
    """
    from sitepress.logconfig import configure_logging

    configure_logging(verbose)


@cli.command()
def build():
    """Build the site for production."""
    from sitepress.build import build_site
    from sitepress.exceptions import BuildError

    settings = _load_settings()

    click.echo("🚀 Starting build process...\n")
    try:
        report = build_site(settings)
    except BuildError as e:
        click.echo(f"\n❌ Build failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"\n🎉 Build completed successfully! ({len(report.pages)} pages)")
    click.echo(f"📦 Output directory: {report.output_dir}")


@cli.command()
@click.option("--host", default=None, help="Host to bind to")
@click.option("--port", default=None, type=int, help="Port to bind to")
def dev(host, port):
    """Start development server."""
    import asyncio

    from sitepress.runtime.dev_server import run_dev_server

    settings = _load_settings()
    host = host if host is not None else settings.host
    port = port if port is not None else settings.port

    click.echo(f"🚀 Starting sitepress dev server on http://{host}:{port}")
    asyncio.run(run_dev_server(settings, host=host, port=port))


if __name__ == "__main__":
    cli()
