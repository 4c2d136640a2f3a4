"""Ad-hoc query execution models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class QueryExecutionRequest(BaseModel):
    """SQL to run against one data source."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    sql: str = Field(min_length=1)
    source_id: int = Field(ge=1)


class QueryResult(BaseModel):
    """Tabular result of an ad-hoc query."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    columns: list[str] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)
    row_count: int = Field(default=0, ge=0)
    execution_time: float = Field(default=0.0, ge=0.0, description="Milliseconds")
