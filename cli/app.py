from __future__ import annotations

import logging

import typer

from errors import ConfigurationError
from logging_config import configure_logging
from services.scraper import build_default_scraper
from settings import get_settings
from storage.influx import build_default_sink

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Poll the parking availability API and record free spaces in InfluxDB.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.command()
def run() -> None:
    """Start the scraper and poll until the process is stopped."""
    configure_logging()
    try:
        scraper = build_default_scraper()
    except ConfigurationError as exc:
        logger.error("Failed to load configuration", extra={"reason": str(exc)})
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    logger.info("Configuration loaded successfully", extra={"url": get_settings().app.api.url})
    try:
        scraper.run()
    except KeyboardInterrupt:
        logger.info("Stopping parking data scraper")
    finally:
        scraper.close()
        build_default_scraper.cache_clear()
        build_default_sink.cache_clear()
        get_settings.cache_clear()


def main() -> None:
    app()
