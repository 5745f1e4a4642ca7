"""Tests for CSRF state random sources."""

from __future__ import annotations

import re

import pytest

from tapatalk_connect.oauth.state import (
    RandomStringGenerator,
    SecretsRandomStringGenerator,
    UrandomRandomStringGenerator,
)

HEX = re.compile(r"^[0-9a-f]+$")


@pytest.mark.parametrize(
    "generator",
    [SecretsRandomStringGenerator(), UrandomRandomStringGenerator()],
    ids=["secrets", "urandom"],
)
class TestRandomStringGenerators:
    """Tests shared by the random string generators."""

    def test_hex_of_requested_length(self, generator: RandomStringGenerator) -> None:
        """Test output is hex with two characters per byte."""
        value = generator.get_random_string(32)

        assert len(value) == 64
        assert HEX.match(value)

    def test_unique(self, generator: RandomStringGenerator) -> None:
        """Test values do not repeat."""
        values = {generator.get_random_string(16) for _ in range(100)}
        assert len(values) == 100

    def test_rejects_non_positive_length(self, generator: RandomStringGenerator) -> None:
        """Test a zero length is rejected."""
        with pytest.raises(ValueError, match="positive"):
            generator.get_random_string(0)
