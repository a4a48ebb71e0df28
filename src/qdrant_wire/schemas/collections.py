"""Collection schemas."""

from pydantic import BaseModel, Field

from qdrant_wire.models.search import SparseVectorParams, VectorParams


class CollectionDescription(BaseModel):
    """Entry of a collection listing."""

    name: str = Field(..., description="Collection name")


class CollectionInfo(BaseModel):
    """Collection state reported by the engine."""

    status: str = Field(..., description="Collection status (Green, Yellow, Red, Grey)")
    segments_count: int = Field(0, description="Number of segments", ge=0)
    points_count: int | None = Field(None, description="Approximate number of points", ge=0)
    indexed_vectors_count: int | None = Field(
        None, description="Approximate number of indexed vectors", ge=0
    )
    vectors: VectorParams | dict[str, VectorParams] | None = Field(
        None, description="Unnamed vector space, or named vector spaces by name"
    )
    sparse_vectors: dict[str, SparseVectorParams] = Field(
        default_factory=dict, description="Sparse vector spaces by name"
    )

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "status": "Green",
                    "segments_count": 2,
                    "points_count": 1000,
                    "indexed_vectors_count": 1000,
                }
            ]
        },
    }
