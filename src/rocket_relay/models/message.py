from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str = Field(default="", alias="_id")
    username: str = ""
    name: str = ""
    token: str = Field(default="", repr=False)


class Credentials(BaseModel):
    email: str
    password: str = Field(repr=False)


class Message(BaseModel):
    """A chat message as carried on the realtime stream."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias="_id")
    room_id: str = Field(default="", alias="rid")
    text: str = Field(default="", alias="msg")
    user: User | None = Field(default=None, alias="u")
