"""Tapatalk application identity."""

from __future__ import annotations

from dataclasses import dataclass, field

from tapatalk_connect.exceptions import InvalidAppIdentityError


@dataclass(frozen=True)
class TapatalkApp:
    """Client id and secret of a registered Tapatalk application.

    The id is always stored as a string. Integers are accepted because
    many ids exceed the native integer range of other platforms and are
    often handed around as numbers.

    Attributes:
        id: Application (client) identifier
        secret: Application (client) secret
    """

    id: str
    secret: str = field(repr=False)

    def __post_init__(self) -> None:
        # bool is an int subclass but never a valid client id
        if isinstance(self.id, bool) or not isinstance(self.id, str | int):
            msg = (
                'The "client_id" must be formatted as a string since many '
                "client IDs are too large to be represented as integers."
            )
            raise InvalidAppIdentityError(msg)
        object.__setattr__(self, "id", str(self.id))

    def get_id(self) -> str:
        """Return the app ID."""
        return self.id

    def get_secret(self) -> str:
        """Return the app secret."""
        return self.secret
