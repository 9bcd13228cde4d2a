"""HashTracks source ingestion: adapters that turn hash kennel websites,
calendars, spreadsheets and feeds into uniform raw event records."""

__version__ = "0.1.0"
