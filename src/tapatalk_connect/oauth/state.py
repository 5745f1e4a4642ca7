"""Random sources for the CSRF state parameter."""

from __future__ import annotations

import os
import secrets
from abc import ABC, abstractmethod


class RandomStringGenerator(ABC):
    """Produces hex-encoded strings from a cryptographically secure source."""

    @abstractmethod
    def get_random_string(self, length: int) -> str:
        """Return ``length`` random bytes, hex-encoded.

        Args:
            length: Number of random bytes

        Returns:
            Hex string of ``2 * length`` characters
        """

    @staticmethod
    def _check_length(length: int) -> None:
        if length < 1:
            msg = "length must be a positive number of bytes"
            raise ValueError(msg)


class SecretsRandomStringGenerator(RandomStringGenerator):
    """Random strings from the :mod:`secrets` module."""

    def get_random_string(self, length: int) -> str:
        self._check_length(length)
        return secrets.token_hex(length)


class UrandomRandomStringGenerator(RandomStringGenerator):
    """Random strings read straight from the OS entropy source."""

    def get_random_string(self, length: int) -> str:
        self._check_length(length)
        return os.urandom(length).hex()
