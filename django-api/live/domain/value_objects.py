"""Domain primitives that enforce validity at creation time."""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Self
from uuid import UUID, uuid4

_SLUG_RE = re.compile(r"^[a-z0-9-]+$")


@dataclass(frozen=True)
class PerformerId:
    """Unique identifier for a Performer."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SongId:
    """Unique identifier for a Song."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class RequestId:
    """Unique identifier for a SongRequest."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=UUID(value))

    @classmethod
    def new(cls) -> Self:
        return cls(value=uuid4())

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Money:
    """Price representation with validation."""

    amount: Decimal

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("Money amount cannot be negative")

    @classmethod
    def of(cls, value: "Decimal | int | float | str") -> Self:
        # floats go through str() so 12.1 stays 12.1
        try:
            amount = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Invalid money amount: {value!r}") from e
        if not amount.is_finite():
            raise ValueError(f"Invalid money amount: {value!r}")
        return cls(amount=amount.quantize(Decimal("0.01")))

    @classmethod
    def zero(cls) -> Self:
        return cls(amount=Decimal("0.00"))

    def __add__(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def __sub__(self, other: "Money") -> "Money":
        return Money(self.amount - other.amount)

    def __bool__(self) -> bool:
        return self.amount > 0

    def __str__(self) -> str:
        return f"{self.amount:.2f}"


@dataclass(frozen=True)
class RequestCap:
    """Maximum number of pending song requests; zero means unlimited."""

    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Request cap cannot be negative")

    @property
    def is_unlimited(self) -> bool:
        return self.value == 0

    def remaining(self, pending: int) -> int | None:
        """Free slots left, or None when the cap is unlimited."""
        if self.is_unlimited:
            return None
        return max(0, self.value - pending)

    def is_reached(self, pending: int) -> bool:
        return not self.is_unlimited and pending >= self.value


@dataclass(frozen=True)
class UrlSlug:
    """Public page slug: lowercase letters, digits and hyphens."""

    value: str

    def __post_init__(self) -> None:
        if not _SLUG_RE.fullmatch(self.value):
            raise ValueError(
                "Slug may only contain lowercase letters, numbers, and hyphens"
            )

    @classmethod
    def normalize(cls, raw: str) -> Self:
        return cls(value=raw.strip().lower())

    def __str__(self) -> str:
        return self.value
