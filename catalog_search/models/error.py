"""Error body returned by the stub catalog API."""

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error payload.

    ``message`` is what the catalog client surfaces to the user; ``detail``
    mirrors it for clients that only read FastAPI's default key.
    """

    error: str = Field(description="Short error category, e.g. 'Validation Error'")
    message: str
    detail: str
    details: Any = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    request_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
