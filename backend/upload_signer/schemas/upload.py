from pydantic import BaseModel, ConfigDict, Field


class UploadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content_type: str = Field(..., alias="contentType")


class UploadResponse(BaseModel):
    url: str
