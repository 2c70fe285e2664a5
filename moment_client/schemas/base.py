from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema for payloads the client sends"""

    model_config = ConfigDict(
        from_attributes=True,
        extra="forbid",
    )


class ResponseSchema(BaseModel):
    """Base schema for payloads the server sends; unknown fields are ignored"""

    model_config = ConfigDict(
        from_attributes=True,
        extra="ignore",
    )
