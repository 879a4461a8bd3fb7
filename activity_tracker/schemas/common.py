from pydantic import BaseModel


class MessageOut(BaseModel):
    message: str


class UploadOut(BaseModel):
    url: str
    message: str
