"""DMF ingest pipeline.

This module parses fixed-width death records, validates their dates,
and reconciles them into the death index store.
"""
