"""Monthly update acquisition.

This package resolves the current update file from the published listing,
downloads it, and verifies it against its published checksum.
"""
