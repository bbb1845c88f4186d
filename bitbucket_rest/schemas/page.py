"""Pagination schemas shared by every paged Bitbucket endpoint."""

from typing import Generic, Self, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class Limit(BaseModel):
    """Request window ``[start, end)`` sent as the ``start``/``limit`` query parameters."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(default=0, ge=0)
    end: int

    @model_validator(mode="after")
    def _check_window(self) -> Self:
        if self.end <= self.start:
            raise ValueError(f"end ({self.end}) must be greater than start ({self.start})")
        return self

    @classmethod
    def first(cls, size: int) -> "Limit":
        return cls(start=0, end=size)

    @property
    def size(self) -> int:
        return self.end - self.start

    def as_params(self) -> dict[str, int]:
        return {"start": self.start, "limit": self.size}


class Page(BaseModel, Generic[T]):
    """One window of a paged result, as returned by the server.

    ``values`` is kept exactly as the server sent it; ``size`` is the
    server-reported item count for this window.
    """

    model_config = ConfigDict(extra="ignore", alias_generator=to_camel, populate_by_name=True)

    start: int = 0
    limit: int = 0
    size: int = 0
    is_last_page: bool = True
    next_page_start: int | None = None
    values: list[T] = Field(default_factory=list)

    def next_limit(self) -> Limit | None:
        """Return the window following this page, or None when there is none."""
        if self.is_last_page or self.next_page_start is None:
            return None
        # The server may cap the page size below what was asked for.
        window = max(self.limit, 1)
        return Limit(start=self.next_page_start, end=self.next_page_start + window)
