"""
Token Parser — Extract a Bearer Token from `influxdb3 create token` Output

The CLI prints the new token on a styled line:

    \x1b[1mToken:\x1b[0m apiv3_AbC...

That formatting is not a stable contract, so when the labelled line is
missing we fall back to the first token-like run of 20+ characters,
preferring `apiv3_`-prefixed candidates. Whatever we pick must still look
like a token (charset + minimum length) before it is trusted.
"""

import logging
import re

from .errors import ParseFailed


logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 20
TOKEN_PREFIX = "apiv3_"

_ANSI = r"(?:\x1b\[[0-9;]*m)*"
LABELLED_TOKEN_RE = re.compile(_ANSI + r"Token:" + _ANSI + r"\s+(\S+)")
FALLBACK_TOKEN_RE = re.compile(r"[A-Za-z0-9_\-]{%d,}" % MIN_TOKEN_LENGTH)
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
VALID_TOKEN_RE = re.compile(r"^[A-Za-z0-9_\-+/=.]{%d,}$" % MIN_TOKEN_LENGTH)


def clean_token(raw: str) -> str:
    """Strip ANSI escapes, control characters and surrounding whitespace."""
    return CONTROL_CHARS_RE.sub("", ANSI_ESCAPE_RE.sub("", raw)).strip()


def looks_like_token(candidate: str) -> bool:
    """Charset and length check applied before trusting a parsed token."""
    return bool(VALID_TOKEN_RE.match(candidate))


def parse_token(output: str) -> str:
    """
    Extract the token from CLI stdout.

    Raises:
        ParseFailed: If no plausible token is found
    """
    match = LABELLED_TOKEN_RE.search(output)
    if match:
        token = clean_token(match.group(1))
        if looks_like_token(token):
            return token
        logger.warning("Labelled token line found but value failed validation")

    candidates = [clean_token(c) for c in FALLBACK_TOKEN_RE.findall(ANSI_ESCAPE_RE.sub("", output))]
    candidates = [c for c in candidates if looks_like_token(c)]
    if not candidates:
        raise ParseFailed("Failed to parse token from CLI output")

    prefixed = [c for c in candidates if c.startswith(TOKEN_PREFIX)]
    token = prefixed[0] if prefixed else candidates[0]
    logger.warning("Token line not found in CLI output; using fallback match")
    return token
