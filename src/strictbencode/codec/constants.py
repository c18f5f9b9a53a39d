"""Wire tokens, integer bounds and default limits."""

from __future__ import annotations

# ── Wire tokens ──────────────────────────────────────────────
TOKEN_INTEGER = b"i"
TOKEN_LIST = b"l"
TOKEN_DICT = b"d"
TOKEN_END = b"e"
TOKEN_COLON = b":"
DIGITS = b"0123456789"

# ── Signed 64-bit integer range ──────────────────────────────
# Enforced on decode, bind and encode.
INT64_MIN: int = -(2**63)
INT64_MAX: int = 2**63 - 1

# Longest literal that can still be an int64: "-9223372036854775808".
MAX_INTEGER_LITERAL: int = 20
# Longest length prefix that can still be an int64.
MAX_LENGTH_LITERAL: int = 19

# ── Defaults ─────────────────────────────────────────────────
# Maximum nesting of lists, dictionaries and records.
MAX_DEPTH: int = 200

# Byte strings are read from the stream in chunks of at most this size.
READ_CHUNK_SIZE: int = 64 * 1024
