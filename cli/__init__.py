"""Process entry point for the parking data scraper."""
