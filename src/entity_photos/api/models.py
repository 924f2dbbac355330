"""Pydantic models for photo API payloads."""

from pydantic import BaseModel, Field


class PhotoReferencePayload(BaseModel):
    """Provider photo reference payload."""

    reference_id: str = Field(alias="referenceId")
    width: int = 0
    height: int = 0
    attribution: str | None = None


class MigrateRequest(BaseModel):
    """Request to migrate an entity's provider photos."""

    entity_id: str = Field(alias="entityId")
    provider_id: str | None = Field(default=None, alias="providerId")
    references: list[PhotoReferencePayload]


class RunBatchRequest(BaseModel):
    """Request to run one migration job batch."""

    batch_size: int = Field(default=10, alias="batchSize", ge=1, le=100)


class ValidateRequest(BaseModel):
    """Request to validate candidate photo URLs."""

    urls: list[str]
    max_concurrency: int = Field(default=3, alias="maxConcurrency", ge=1, le=20)
