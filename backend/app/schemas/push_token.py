from pydantic import BaseModel, Field


class PushTokenRegister(BaseModel):
    token: str = Field(..., min_length=1, max_length=255, description="Token push del dispositivo")
    platform: str = Field(default="unknown", max_length=20, description="ios | android | web | unknown")


class PushTokenRemove(BaseModel):
    token: str = Field(..., min_length=1, max_length=255)
