"""
Pop2Exchange Log Exporter

Incrementally ingests the Pop2Exchange connector log into a relational
store, resuming from the last committed byte offset, and exposes the
aggregate mail and error figures as plain-text metrics.
"""

__version__ = "0.1.0"
