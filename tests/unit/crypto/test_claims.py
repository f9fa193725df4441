"""Tests for temporal claim defaults and expiry checks."""

from datetime import UTC, datetime, timedelta

import pytest

from jwtool.crypto.claims import apply_defaults, get_token_expiry, is_expired
from jwtool.crypto.errors import FormatError
from jwtool.crypto.signer import sign, verify
from jwtool.crypto.types import TokenPayload

NOW = datetime(2024, 1, 1, tzinfo=UTC)
NOW_TS = int(NOW.timestamp())
FAR_FUTURE = 100_000_000_000_000


class TestApplyDefaults:
    """Tests for apply_defaults."""

    def test_fills_missing_claims(self) -> None:
        claims = apply_defaults({"sub": "u1"}, now=NOW)
        assert claims == {
            "sub": "u1",
            "iat": NOW_TS,
            "exp": NOW_TS + 3600,
            "nbf": NOW_TS,
        }

    def test_custom_ttl(self) -> None:
        claims = apply_defaults({}, now=NOW, ttl=60)
        assert claims["exp"] == NOW_TS + 60

    def test_keeps_supplied_values(self) -> None:
        supplied = {"iat": 100, "exp": 200, "nbf": 150}
        assert apply_defaults(supplied, now=NOW) == supplied

    def test_derives_from_supplied_iat(self) -> None:
        claims = apply_defaults({"iat": 1000}, now=NOW)
        assert claims["exp"] == 4600
        assert claims["nbf"] == 1000

    def test_does_not_mutate_input(self) -> None:
        original = {"sub": "u1"}
        apply_defaults(original, now=NOW)
        assert original == {"sub": "u1"}

    def test_integer_seconds(self) -> None:
        claims = apply_defaults({}, now=datetime(2024, 1, 1, 0, 0, 0, 999999, UTC))
        assert isinstance(claims["iat"], int)
        assert claims["iat"] == NOW_TS

    def test_model_input(self) -> None:
        payload = TokenPayload(sub="u1", role="admin")
        claims = apply_defaults(payload, now=NOW)
        assert isinstance(claims, TokenPayload)
        assert claims.exp == NOW_TS + 3600
        assert payload.exp is None
        assert claims.to_json_dict()["role"] == "admin"

    def test_rejects_non_numeric_iat(self) -> None:
        with pytest.raises(FormatError, match="iat claim must be a NumericDate"):
            apply_defaults({"iat": "now"}, now=NOW)

    def test_rejects_boolean_iat(self) -> None:
        with pytest.raises(FormatError):
            apply_defaults({"iat": True}, now=NOW)

    def test_defaults_then_sign(self) -> None:
        token = sign({}, apply_defaults({"sub": "u1"}), "secret", "HS256")
        result = verify(token, "secret", "HS256")
        assert result.is_valid
        assert result.payload is not None
        assert result.payload["exp"] - result.payload["iat"] == 3600


class TestIsExpired:
    """Tests for is_expired."""

    def test_future_exp(self) -> None:
        assert not is_expired({"exp": NOW_TS + 1}, NOW)

    def test_past_exp(self) -> None:
        assert is_expired({"exp": NOW_TS - 1}, NOW)

    def test_boundary_is_expired(self) -> None:
        assert is_expired({"exp": NOW_TS}, NOW)

    def test_no_exp_never_expires(self) -> None:
        assert not is_expired({"sub": "u1"}, NOW)

    def test_ignores_nbf(self) -> None:
        assert not is_expired({"nbf": NOW_TS + 1000, "exp": NOW_TS + 10}, NOW)

    def test_far_future_exp(self) -> None:
        assert not is_expired({"exp": FAR_FUTURE}, NOW)

    def test_defaults_to_current_time(self) -> None:
        assert is_expired({"exp": 1})

    def test_model_input(self) -> None:
        assert is_expired(TokenPayload(exp=NOW_TS - 5), NOW)

    def test_rejects_non_numeric_exp(self) -> None:
        with pytest.raises(FormatError, match="NumericDate"):
            is_expired({"exp": "tomorrow"}, NOW)

    def test_rejects_boolean_exp(self) -> None:
        with pytest.raises(FormatError):
            is_expired({"exp": True}, NOW)


class TestGetTokenExpiry:
    """Tests for get_token_expiry."""

    def test_remaining_lifetime(self) -> None:
        info = get_token_expiry({"exp": NOW_TS + 90}, NOW)
        assert not info.is_expired
        assert info.expires_at == NOW + timedelta(seconds=90)
        assert info.time_until_expiry == timedelta(seconds=90)

    def test_expired(self) -> None:
        info = get_token_expiry({"exp": NOW_TS - 90}, NOW)
        assert info.is_expired
        assert info.time_until_expiry is None

    def test_without_exp(self) -> None:
        info = get_token_expiry({}, NOW)
        assert not info.is_expired
        assert info.expires_at is None

    def test_exp_beyond_datetime_range(self) -> None:
        info = get_token_expiry({"exp": FAR_FUTURE}, NOW)
        assert not info.is_expired
        assert info.expires_at is None
        assert info.time_until_expiry is None
