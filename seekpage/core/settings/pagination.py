"""Page size and counting defaults for KeysetPaginator.

Read from PAGINATION_* variables, e.g. PAGINATION_DEFAULT_LIMIT=25,
PAGINATION_COUNT_TOTAL=true.
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaginationSettings(BaseSettings):
    """Defaults applied when a page request leaves them open.

    Attributes:
        default_limit: Page size when neither the call nor the statement has a limit
        max_limit: Requested limits above this are clamped to it
        count_total: Whether pages carry a total count unless a call says otherwise
    """

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    default_limit: int = Field(default=10, ge=1, le=1000, description="Page size fallback")
    max_limit: int = Field(default=100, ge=1, le=10000, description="Largest page served")
    count_total: bool = Field(
        default=False,
        description="Run the extra COUNT query for every page",
    )

    @model_validator(mode="after")
    def check_limits(self) -> PaginationSettings:
        if self.default_limit > self.max_limit:
            msg = "default_limit must not exceed max_limit"
            raise ValueError(msg)
        return self
