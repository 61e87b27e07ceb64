from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MessagePayload(BaseModel):
    title: str
    body: str
    attachment_url: str = Field(alias="attachmentURL")


class Message(BaseModel):
    id: str
    title: str
    body: str
    attachment_url: str = Field(alias="attachmentURL")
    created_at: int = Field(alias="createdAt", ge=0)
    updated_at: Optional[int] = Field(default=None, alias="updatedAt", ge=0)

    model_config = ConfigDict(populate_by_name=True)
