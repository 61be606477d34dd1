"""Absences module — absence types, per-day records, aggregation."""
