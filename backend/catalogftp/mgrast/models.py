from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator


class _Resource(BaseModel):
    """
    Base for MG-RAST payloads.

    Unknown keys are ignored and missing or null keys fall back to the field default,
    so a sparse record still decodes. A value of the wrong type is a schema error.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_is_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None and info.field_name:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return v


class ProjectListItem(_Resource):
    id: str = ""
    name: str = ""
    pi: str = ""
    status: str = ""
    url: str = ""
    created: str = ""
    version: int = 0


class ProjectList(_Resource):
    """Body of `GET /project?limit=0`."""

    data: list[ProjectListItem] = []
    next: Optional[str] = None
    prev: Optional[str] = None
    url: str = ""
    limit: int = 0
    offset: int = 0
    total_count: int = 0


class ProjectResource(_Resource):
    """Body of `GET /project/<id>?verbosity=full`. Each metagenome row starts with its id."""

    id: str = ""
    name: str = ""
    pi: str = ""
    description: str = ""
    status: str = ""
    url: str = ""
    created: str = ""
    funding_source: str = ""
    version: int = 0
    metagenomes: list[list[str]] = []
    libraries: list[list[str]] = []
    samples: list[list[str]] = []
    metadata: Any = None


class DownloadListItem(_Resource):
    file_id: str = ""
    file_name: str = ""
    file_size: int = 0
    file_format: str = ""
    file_md5: str = ""
    node_id: str = ""
    stage_id: str = ""
    stage_name: str = ""
    seq_format: str = ""
    data_type: str = ""
    url: str = ""
    id: str = ""
    statistics: Any = None


class DownloadList(_Resource):
    """Body of `GET /download/<metagenome id>`."""

    id: str = ""
    url: str = ""
    data: list[DownloadListItem] = []
