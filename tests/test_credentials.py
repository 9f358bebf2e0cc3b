from __future__ import annotations

import pytest

from fx_radar.rates.credentials import (
    CredentialLookup,
    EnvCredentialLookup,
    StaticCredentialLookup,
    validate_credential_format,
)


def test_env_lookup_reads_prefixed_variables() -> None:
    lookup = EnvCredentialLookup(
        {"FX_RADAR_FIXER_IO_API_KEY": "  abc123  ", "FX_RADAR_CURRENCY_API_API_KEY": "   "}
    )
    assert lookup.get_credential("fixer_io") == "abc123"
    assert lookup.get_credential("CURRENCY_API") is None
    assert lookup.get_credential("ALPHA_VANTAGE") is None


def test_env_lookup_defaults_to_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("FX_RADAR_EXCHANGERATE_API_API_KEY", "from-env")
    assert EnvCredentialLookup().get_credential("EXCHANGERATE_API") == "from-env"


def test_static_lookup_is_case_insensitive() -> None:
    lookup = StaticCredentialLookup({"fixer_io": "key"})
    assert lookup.get_credential("FIXER_IO") == "key"
    assert lookup.get_credential("alpha_vantage") is None
    assert isinstance(lookup, CredentialLookup)


@pytest.mark.parametrize(
    ("provider", "credential", "valid"),
    [
        ("FIXER_IO", "a" * 32, True),
        ("FIXER_IO", "g" * 32, False),
        ("CURRENCY_API", "A1" * 20, True),
        ("CURRENCY_API", "A1" * 19, False),
        ("ALPHA_VANTAGE", "ABCDEFGH12345678", True),
        ("ALPHA_VANTAGE", "abcdefgh12345678", False),
        ("EXCHANGERATE_API", "x" * 16, True),
        ("EXCHANGERATE_API", "x" * 15, False),
        ("FIXER_IO", None, False),
        ("FIXER_IO", "", False),
    ],
)
def test_validate_credential_format(provider: str, credential, valid: bool) -> None:
    assert validate_credential_format(provider, credential) is valid
