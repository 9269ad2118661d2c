from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class UserIn(BaseModel):
    name: str = Field(..., min_length=1, description="Display name")
    mail: str = Field(..., min_length=3, description="Contact address")
    password: str = Field(..., description="Stored as given; the API has no auth")
    comment: str = Field(default="", description="Free-text biography")
    experiencies: List[str] = Field(default_factory=list, description="Experience ids")


class UserModel(UserIn):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id")
