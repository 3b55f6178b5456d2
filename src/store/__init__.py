"""Storage layer.

This module persists death index rows in a relational table.
It provides keyed upsert, delete, and transaction control for ingest.
"""
