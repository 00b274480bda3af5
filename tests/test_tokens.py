"""
Token Parser Tests — `influxdb3 create token` Output

Tests cover:
- Styled "Token:" line (ANSI escapes stripped)
- Fallback to apiv3_-prefixed candidates
- Rejection of output with no plausible token
"""

import pytest

from flightdeck.influx import ParseFailed, parse_token
from flightdeck.influx.tokens import clean_token, looks_like_token


TOKEN = "apiv3_Zx9Qw8Er7Ty6Ui5Op4As3Df2Gh1Jk0Lz"


class TestLabelledLine:
    """The normal CLI output shape."""

    def test_plain_label(self):
        output = f"New token created successfully!\n\nToken: {TOKEN}\n"
        assert parse_token(output) == TOKEN

    def test_ansi_styled_label(self):
        output = f"\x1b[1mToken:\x1b[0m {TOKEN}\x1b[0m\nHTTP Requests Header: Authorization: Bearer {TOKEN}\n"
        assert parse_token(output) == TOKEN

    def test_label_with_carriage_return(self):
        assert parse_token(f"Token: {TOKEN}\r\n") == TOKEN


class TestFallback:
    """Unlabelled output."""

    def test_prefers_apiv3_candidate(self):
        output = (
            "request id 0123456789abcdef0123456789\n"
            f"your new credential is {TOKEN}\n"
        )
        assert parse_token(output) == TOKEN

    def test_first_candidate_without_prefix(self):
        raw = "AbCdEfGhIjKlMnOpQrStUvWxYz012345"
        assert parse_token(f"created: {raw}") == raw

    def test_no_token_raises(self):
        with pytest.raises(ParseFailed):
            parse_token("Error: permission denied")

    def test_empty_output_raises(self):
        with pytest.raises(ParseFailed):
            parse_token("")


class TestValidation:
    """Helpers."""

    def test_clean_token_strips_escapes(self):
        assert clean_token(f"\x1b[32m{TOKEN}\x1b[0m\n") == TOKEN

    def test_short_values_rejected(self):
        assert not looks_like_token("apiv3_short")
        assert looks_like_token(TOKEN)

    def test_whitespace_rejected(self):
        assert not looks_like_token("apiv3_has spaces inside the token")
