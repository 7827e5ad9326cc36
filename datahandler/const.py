from pathlib import Path

BYTES_PER_MIB = 1024 * 1024

# Size of the parts sent in a multipart upload. Every part except the last
# one has exactly this size.
CHUNK_SIZE = 10 * BYTES_PER_MIB

# Files strictly larger than this are uploaded as multipart uploads. Must
# match the single-shot limit the load service enforces.
MIN_MULTIPART_UPLOAD_SIZE = 15 * BYTES_PER_MIB

HTTP_TIMEOUT_SECONDS = 60

TOKEN_HEADER = "UserAPIToken"

CONFIG_DIR = Path.home() / ".datahandler"
CONFIG_FILE = "config.yaml"
CONFIG_ENCODING = "utf-8"
