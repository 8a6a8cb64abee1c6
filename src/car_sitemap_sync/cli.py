"""CLI entry-point for car-sitemap-sync.

Designed for use with ``uvx`` from the site's build step::

    uvx car-sitemap-sync generate

Or with a config file and live URL checks::

    CHECK_URL_STATUS=true uvx car-sitemap-sync generate --config sitemaps.toml
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from car_sitemap_sync.engine import SitemapEngine, format_summary, run_validation
from car_sitemap_sync.settings import Settings, SettingsError, load_settings
from car_sitemap_sync.tools import validate_sitemaps

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # httpx logs every request at INFO; one line per HEAD check is noise.
    logging.getLogger("httpx").setLevel(logging.WARNING)


@click.group()
def main():
    """Regenerate the marketplace's XML sitemaps from the content API."""


def _load(config_path: str | None, **overrides) -> Settings:
    try:
        return load_settings(config_path).with_overrides(**overrides)
    except SettingsError as exc:
        raise click.UsageError(str(exc)) from exc


@main.command()
@click.option(
    "--config", "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a TOML config file with a [settings] table.",
)
@click.option(
    "--output-dir", "-o",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Primary output directory (default: public).",
)
@click.option(
    "--secondary-dir",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Build directory that also receives a copy when it exists (default: dist).",
)
@click.option(
    "--prune/--no-prune",
    default=None,
    help="Drop items with invalid URLs (default: on, env PRUNE_INVALID_URLS).",
)
@click.option(
    "--check-status/--no-check-status",
    default=None,
    help="HEAD-check every URL before publishing (default: off, env CHECK_URL_STATUS).",
)
@click.option(
    "--no-validate",
    is_flag=True,
    default=False,
    help="Skip validation after generation (env SKIP_VALIDATION).",
)
def generate(
    config_path: str | None,
    output_dir: Path | None,
    secondary_dir: Path | None,
    prune: bool | None,
    check_status: bool | None,
    no_validate: bool,
):
    """Fetch content, prune URLs, and write sitemaps plus the index."""
    settings = _load(
        config_path,
        output_dir=output_dir,
        secondary_dir=secondary_dir,
        prune_invalid_urls=prune,
        check_url_status=check_status,
        skip_validation=True if no_validate else None,
    )
    _configure_logging(settings.log_level)

    click.echo("Starting sitemap generation...")
    click.echo(f"Site URL: {settings.site_url}")
    click.echo(f"API URL: {settings.api_url}")
    click.echo(f"Output directory: {settings.output_dir}")

    engine = SitemapEngine(settings)
    try:
        report = asyncio.run(engine.run())
    except Exception as exc:
        logging.getLogger(__name__).exception("Sitemap generation failed")
        click.echo(f"Error generating sitemaps: {exc}", err=True)
        sys.exit(1)

    click.echo("All sitemaps generated successfully.")
    click.echo(format_summary(report, settings.site_url))

    if settings.skip_validation:
        click.echo("Validation skipped; run `car-sitemap-sync validate` manually.")
        return

    click.echo("Running automatic validation...")
    outcome = run_validation(settings.validation_command, settings.output_dir)
    if outcome.returncode is None:
        click.echo(f"Could not run validation: {outcome.stderr}", err=True)
        click.echo("Sitemaps were generated but not validated.", err=True)
        return
    if outcome.stdout:
        click.echo(outcome.stdout.rstrip())
    if outcome.failed:
        if outcome.stderr:
            click.echo(outcome.stderr.rstrip(), err=True)
        click.echo("Validation failed. Generated sitemaps may have issues.", err=True)
        click.echo("Run with --no-validate to skip validation, or fix the errors above.", err=True)
        sys.exit(1)
    click.echo("Sitemap generation and validation completed successfully.")


@main.command()
@click.option(
    "--dir", "-d",
    "directory",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the sitemaps (default: configured output directory).",
)
@click.option(
    "--config", "-c",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a TOML config file with a [settings] table.",
)
def validate(directory: Path | None, config_path: str | None):
    """Validate previously generated sitemap files."""
    if directory is None:
        directory = _load(config_path).output_dir
    sys.exit(validate_sitemaps.main(["--dir", str(directory)]))


if __name__ == "__main__":
    main()
