"""
core.users.filters — Pagination parameters for listing users.
"""
from __future__ import annotations

from dataclasses import dataclass

from core.users.errors import ValidationError

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20

# Ids, offsets and limits are bound as signed 64-bit integers
MAX_INT64 = 2**63 - 1


@dataclass(frozen=True)
class UsersListFilter:
    """A 1-based page window over the users table.

    No upper bound is placed on ``page_size`` beyond what the backend can
    bind: both the offset and the limit must fit in a signed 64-bit int.
    """

    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        for field_name in ('page', 'page_size'):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f'{field_name} must be an integer, got {value!r}')
            if value < 1:
                raise ValidationError(f'{field_name} must be positive, got {value}')
            if value > MAX_INT64:
                raise ValidationError(f'{field_name} is too large, got {value}')
        if self.offset > MAX_INT64:
            raise ValidationError(
                f'page {self.page} with page_size {self.page_size} is out of range'
            )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size
