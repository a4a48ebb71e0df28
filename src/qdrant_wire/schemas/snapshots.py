"""Snapshot schemas."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field


class SnapshotDescription(BaseModel):
    """Snapshot metadata returned by create and list operations."""

    name: str = Field(..., description="Snapshot file name")
    creation_time: datetime | None = Field(None, description="Creation time (UTC)")
    size: int = Field(0, description="Snapshot size in bytes", ge=0)
    checksum: str | None = Field(None, description="SHA-256 hex digest, when the server knows it")

    model_config = {"frozen": True}


class SnapshotTransferResult(BaseModel):
    """Outcome of a completed snapshot download."""

    path: Path = Field(..., description="Final location of the downloaded artifact")
    size: int = Field(..., description="Artifact size in bytes", ge=0)
    sha256: str = Field(..., description="SHA-256 hex digest of the artifact")
    resumed_from: int = Field(
        0, description="Bytes already present from an earlier interrupted transfer", ge=0
    )
    attempts: int = Field(1, description="HTTP requests made to complete the transfer", ge=1)
    verified: bool = Field(
        False, description="Whether the digest was checked against an expected value"
    )

    model_config = {"frozen": True}
