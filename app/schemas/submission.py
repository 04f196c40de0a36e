"""Pydantic schemas for submission endpoints. Field names are camelCase on the wire."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EnhanceData(CamelModel):
    raw_download_url: str
    raw_file_name: str
    raw_file_size: str
    enhanced_download_url: str | None = None
    enhanced_file_name: str | None = None
    enhanced_file_size: str | None = None
    duration: float
    voice_id: str | None = None


class EnhanceResponse(CamelModel):
    success: bool = True
    message: str
    data: EnhanceData


class UploadData(CamelModel):
    download_url: str
    file_name: str
    file_size: str
    duration: float


class UploadResponse(CamelModel):
    success: bool = True
    message: str
    data: UploadData


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
