from pydantic import BaseModel


class HealthStatus(BaseModel):
    status: str
    users: int = 0
    experiences: int = 0
