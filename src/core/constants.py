"""Core constants used across loader modules.

This module centralizes record layout offsets, defaults, and URLs.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_DIR = Path("/data/death-index")
LOG_DIR_NAME = "log"
LOG_FILE_TEMPLATE = "update-{date}.log"
DEFAULT_DATABASE_NAME = "ssn"
DEFAULT_DB_DRIVER = "postgresql+psycopg"
DEFAULT_DB_HOST = "localhost"
DEFAULT_DB_PORT = 5432
DEFAULT_COMMIT_INTERVAL = 100
DEATH_INDEX_TABLE_NAME = "death_index"

# Record layout, see https://dmf.ntis.gov/recordlayout.pdf
STATUS_SLICE = slice(0, 1)
SSN_SLICE = slice(1, 10)
LAST_NAME_SLICE = slice(10, 30)
SUFFIX_SLICE = slice(30, 34)
FIRST_NAME_SLICE = slice(34, 49)
MIDDLE_NAME_SLICE = slice(49, 64)
VERIFIED_SLICE = slice(64, 65)
DATE_OF_DEATH_SLICE = slice(65, 73)
DATE_OF_BIRTH_SLICE = slice(73, 81)
MIN_RECORD_LENGTH = 81

STATUS_ADD = "A"
STATUS_CHANGE = "C"
STATUS_DELETE = "D"
STATUS_FULL_FILE = " "

DEFAULT_BASE_URL = "https://dmf.ntis.gov"
MONTHLY_LISTING_PATH = "/monthly/"
MONTHLY_DOWNLOAD_PATH = "/dmldata/monthly"
ASCII_FILE_MARKER = "MA"
LISTING_DATE_FORMAT = "%Y/%m/01"
LISTING_MIN_COLUMNS = 6
LISTING_FILE_NAME_COLUMN = 0
LISTING_DATE_COLUMN = 2
LISTING_MD5_COLUMN = 5
CHECKSUM_SIDECAR_SUFFIX = ".md5"
PARTIAL_DOWNLOAD_SUFFIX = ".part"
DEFAULT_HTTP_RETRIES = 5
DEFAULT_HTTP_READ_TIMEOUT = 60.0
HTTP_CONNECT_TIMEOUT = 30.0
DOWNLOAD_CHUNK_SIZE = 1024 * 1024
CHECKSUM_CHUNK_SIZE = 1024 * 1024
