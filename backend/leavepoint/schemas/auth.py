from __future__ import annotations

from typing import Self

from pydantic import BaseModel, model_validator


class Actor(BaseModel):
    """Authenticated identity issuing a command.

    Authentication happens upstream; the engine only compares identities.
    """

    name: str | None = None
    email: str | None = None
    role: str = "csp"

    @model_validator(mode="after")
    def _normalize(self) -> Self:
        self.name = (self.name or "").strip() or None
        self.email = (self.email or "").strip() or None
        if self.name is None and self.email is None:
            msg = "an actor needs a name or an email"
            raise ValueError(msg)
        return self

    @classmethod
    def from_identity(cls, identity: str, role: str = "csp") -> Actor:
        """Build an actor from a single identity string (an email when it contains '@')."""
        if "@" in identity:
            return cls(email=identity, role=role)
        return cls(name=identity, role=role)

    @property
    def identity(self) -> str:
        """The string recorded as ``actor`` in audit entries."""
        return self.email or self.name or ""
