"""Constants used throughout sit."""

# Version
VERSION = "0.1.0"

# Directory names
SIT_DIR = ".sit"
OBJECTS_DIR = "objects"
REFS_DIR = "refs"
HEADS_DIR = "heads"

# File names
HEAD_FILE = "HEAD"
COMMIT_MSG_FILE = "COMMIT_MSG"
INDEX_FILE = "index"
CONFIG_DB = "config.db"
LOCK_FILE = "LOCK"

# Ref names
HEAD_REF = "HEAD"
MASTER_BRANCH = "master"

# Index file format version
INDEX_VERSION = 1

# File size limits (bytes)
WARN_FILE_SIZE = 100 * 1024 * 1024  # 100 MiB
MAX_FILE_SIZE = 200 * 1024 * 1024   # 200 MiB

# Hash algorithm
HASH_ALGORITHM = "sha256"
HASH_LENGTH = 64  # SHA-256 produces 64 hex characters
SHORT_ID_MIN = 4

# "No commit" sentinel; never stored as an object
EMPTY_REF = "0" * HASH_LENGTH

# Configuration keys required to commit
USER_NAME_KEY = "user.name"
USER_EMAIL_KEY = "user.email"

# Exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2
EXIT_INTERRUPTED = 130
