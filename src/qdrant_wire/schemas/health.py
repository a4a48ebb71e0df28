"""Health check schemas."""

from pydantic import BaseModel, Field


class HealthInfo(BaseModel):
    """Engine identity returned by the health check."""

    title: str = Field(..., description="Server title")
    version: str = Field(..., description="Server version")
    commit: str | None = Field(None, description="Build commit, when reported")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [{"title": "qdrant - vector search engine", "version": "1.13.2"}]
        },
    }
