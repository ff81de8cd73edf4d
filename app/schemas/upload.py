# app/schemas/upload.py
from pydantic import ConfigDict
from sqlmodel import SQLModel


class UploadRead(SQLModel):
    """
    Result of an upload.

    - url: public URL stored in post / section fields
    - key: object key inside the bucket (needed to delete it later)
    """

    url: str
    key: str


class UploadDelete(SQLModel):
    """
    Delete request: either the object key or its public URL.
    """

    model_config = ConfigDict(extra="forbid")

    key: str | None = None
    url: str | None = None
