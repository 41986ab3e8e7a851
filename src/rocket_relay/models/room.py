from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RoomKind(str, Enum):
    """Rocket.Chat room type codes (the ``t`` field)."""

    DIRECT = "d"
    CHANNEL = "c"
    PRIVATE_GROUP = "p"
    LIVECHAT = "l"
    UNKNOWN = ""

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


class Room(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str = Field(alias="_id")
    name: str = ""
    kind: RoomKind = Field(default=RoomKind.UNKNOWN, alias="t")

    @field_validator("name", mode="before")
    @classmethod
    def _none_name(cls, value):
        # direct-message rooms carry no name
        return value or ""

    @field_validator("kind", mode="before")
    @classmethod
    def _parse_kind(cls, value):
        if isinstance(value, RoomKind):
            return value
        return RoomKind(value or "")

    @property
    def is_direct(self) -> bool:
        return self.kind is RoomKind.DIRECT

    @classmethod
    def placeholder(cls, room_id: str) -> "Room":
        """Room that only knows its identifier, used when lookup fails."""
        return cls(id=room_id, kind=RoomKind.UNKNOWN)
