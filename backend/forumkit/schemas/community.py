"""Community schemas plus record mapping."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

DEFAULT_COLOR = "#FF4500"


class Community(BaseModel):
    id: int
    name: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    member_count: int = 0
    color: str = DEFAULT_COLOR
    post_count: int = 0

    @property
    def key(self) -> str:
        return f"community_{self.id}"

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Community":
        return cls(
            id=record["Id"],
            name=record.get("name_c") or "",
            description=record.get("description_c"),
            category=record.get("category_c"),
            member_count=record.get("member_count_c") or 0,
            color=record.get("color_c") or DEFAULT_COLOR,
            post_count=record.get("post_count_c") or 0,
        )


class CommunityCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    member_count: int = 1
    color: str = DEFAULT_COLOR
    category: str = "General"

    def to_record(self) -> Dict[str, Any]:
        return {
            "name_c": self.name,
            "description_c": self.description,
            "member_count_c": self.member_count,
            "color_c": self.color,
            "category_c": self.category,
        }


class CommunityUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    member_count: Optional[int] = None
    color: Optional[str] = None
    category: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {}
        if self.name:
            record["name_c"] = self.name
        if self.description:
            record["description_c"] = self.description
        if self.member_count is not None:
            record["member_count_c"] = self.member_count
        if self.color:
            record["color_c"] = self.color
        if self.category:
            record["category_c"] = self.category
        return record


class CommunitySearchHit(BaseModel):
    community: Community
    snippet: str = ""
