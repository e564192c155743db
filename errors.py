"""Exception taxonomy for the parking scraper."""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for every error raised by the scraper."""


class ConfigurationError(ScraperError):
    """Configuration could not be loaded or validated at startup."""


class TransportError(ScraperError):
    """The upstream API could not be reached or answered with an error status."""


class DecodeError(ScraperError):
    """The upstream body did not match the expected schema."""


class UpstreamRejected(ScraperError):
    """The upstream API reported ``success: false``."""


class EmptyPayload(ScraperError):
    """The upstream API returned no area readings."""


class SinkWriteError(ScraperError):
    """Points could not be written to the time-series store."""
