"""TicketPulse: ticket spreadsheet ingestion, normalization and trend analytics."""

__version__ = "0.3.0"
