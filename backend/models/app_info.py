# Application name/version records, keyed by name.
from pydantic import BaseModel, Field


class AppInfo(BaseModel):
    name: str
    version: str


class AppInfoCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    version: str = Field(min_length=1)


class AppInfoUpdateRequest(BaseModel):
    version: str = Field(min_length=1)
