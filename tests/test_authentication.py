"""Unit tests for pigi.services.authentication."""

from __future__ import annotations

import base64

from starlette.datastructures import Headers

from pigi.services.authentication import decode_basic_password, resolve_credential


def _basic(value: str) -> str:
    return "Basic " + base64.b64encode(value.encode("utf-8")).decode("ascii")


# ---------------------------------------------------------------------------
# decode_basic_password
# ---------------------------------------------------------------------------


class TestDecodeBasicPassword:
    def test_password_returned(self) -> None:
        assert decode_basic_password(_basic("user:ghp_abc")) == "ghp_abc"

    def test_username_ignored(self) -> None:
        assert decode_basic_password(_basic(":ghp_abc")) == "ghp_abc"

    def test_password_may_contain_colon(self) -> None:
        assert decode_basic_password(_basic("user:a:b")) == "a:b"

    def test_scheme_is_case_insensitive(self) -> None:
        header = _basic("user:ghp_abc").replace("Basic", "basic")
        assert decode_basic_password(header) == "ghp_abc"

    def test_missing_header(self) -> None:
        assert decode_basic_password(None) is None
        assert decode_basic_password("") is None

    def test_other_scheme(self) -> None:
        assert decode_basic_password("Bearer ghp_abc") is None

    def test_invalid_base64(self) -> None:
        assert decode_basic_password("Basic !!!not-base64!!!") is None

    def test_not_utf8(self) -> None:
        header = "Basic " + base64.b64encode(b"user:\xff\xfe").decode("ascii")
        assert decode_basic_password(header) is None

    def test_no_separator(self) -> None:
        assert decode_basic_password(_basic("justauser")) is None

    def test_empty_password(self) -> None:
        assert decode_basic_password(_basic("user:")) is None

    def test_scheme_without_value(self) -> None:
        assert decode_basic_password("Basic") is None

    def test_non_ascii_password(self) -> None:
        assert decode_basic_password(_basic("user:pässword")) is None

    def test_password_with_line_break(self) -> None:
        assert decode_basic_password(_basic("user:token\r\nX-Injected: 1")) is None


# ---------------------------------------------------------------------------
# resolve_credential
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_basic_password_beats_fallback(self) -> None:
        headers = Headers({"Authorization": _basic("user:from-request")})
        assert resolve_credential(headers, "from-config") == "from-request"

    def test_fallback_used_without_header(self) -> None:
        assert resolve_credential(Headers({}), "from-config") == "from-config"

    def test_none_without_header_or_fallback(self) -> None:
        assert resolve_credential(Headers({}), None) is None

    def test_empty_fallback_is_none(self) -> None:
        assert resolve_credential(Headers({}), "") is None

    def test_malformed_header_falls_through_to_fallback(self) -> None:
        headers = Headers({"Authorization": "Basic %%%"})
        assert resolve_credential(headers, "from-config") == "from-config"

    def test_malformed_header_without_fallback(self) -> None:
        headers = Headers({"Authorization": "Basic %%%"})
        assert resolve_credential(headers, None) is None

    def test_non_ascii_password_falls_through_to_fallback(self) -> None:
        headers = Headers({"Authorization": _basic("user:pässword")})
        assert resolve_credential(headers, "from-config") == "from-config"

    def test_plain_dict_with_lowercase_key(self) -> None:
        headers = {"authorization": _basic("user:from-request")}
        assert resolve_credential(headers, None) == "from-request"
