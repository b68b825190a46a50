from pydantic import BaseModel, Field


class URLMapping(BaseModel):
    short_url: str = Field(..., pattern=r"^[0-9a-f]{10}$")
    long_url: str


class ShortenRequest(BaseModel):
    long_url: str = Field(..., min_length=1)


class ShortenResponse(BaseModel):
    short_url: str
    long_url: str
