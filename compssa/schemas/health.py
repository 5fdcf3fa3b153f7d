"""Schema for GET /health."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness plus a database probe for the accounts store."""

    status: Literal["ok"] = "ok"
    environment: str = Field(description="APP_ENV of the running service")
    version: str = Field(description="API version")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Result of SELECT 1 against DATABASE_URL",
    )
