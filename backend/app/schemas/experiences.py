from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ExperienceIn(BaseModel):
    description: str = Field(default="", description="What the activity was")
    date: Optional[str] = Field(default=None, description="ISO date, if known")
    owner: Optional[str] = Field(default=None, description="Owning user id")
    participants: List[str] = Field(default_factory=list, description="Participant user ids")


class ExperienceModel(ExperienceIn):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id")
