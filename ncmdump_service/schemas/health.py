from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    name: str
    version: str
    subscribed: bool
