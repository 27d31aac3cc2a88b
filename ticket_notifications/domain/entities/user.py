"""Domain entity describing a user known to the ticketing platform."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserContact:
    """Read-only contact details owned by the ticket layer's profile table."""

    id: str
    name: str | None
    email: str | None
    role: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id


__all__ = ["UserContact"]
