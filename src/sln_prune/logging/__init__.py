"""Structured logging utilities."""

from .audit import AuditEvent, JsonlAuditLogger, sanitize_metadata, utc_timestamp

__all__ = ["AuditEvent", "JsonlAuditLogger", "sanitize_metadata", "utc_timestamp"]
