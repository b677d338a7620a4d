"""Shared record schemas."""
