"""Tests for runtime settings."""

import pytest
from ledgerrecon.config import ImportSettings
from ledgerrecon.domain.errors import ValidationError


def test_defaults():
    settings = ImportSettings.from_env({})
    assert settings.chunk_size == 100
    assert settings.similarity_threshold == 0.7
    assert settings.description_max_length == 500


def test_from_env():
    settings = ImportSettings.from_env(
        {"LEDGERRECON_CHUNK_SIZE": "25", "LEDGERRECON_SIMILARITY_THRESHOLD": "0.85"}
    )
    assert settings.chunk_size == 25
    assert settings.similarity_threshold == 0.85


@pytest.mark.parametrize(
    "environ, message",
    [
        ({"LEDGERRECON_CHUNK_SIZE": "many"}, "must be an integer"),
        ({"LEDGERRECON_CHUNK_SIZE": "0"}, "at least 1"),
        ({"LEDGERRECON_SIMILARITY_THRESHOLD": "high"}, "must be a number"),
        ({"LEDGERRECON_SIMILARITY_THRESHOLD": "1.5"}, "between 0 and 1"),
    ],
)
def test_invalid_values(environ, message):
    with pytest.raises(ValidationError, match=message):
        ImportSettings.from_env(environ)
