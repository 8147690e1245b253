"""Calendar source model."""

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class CalendarSource(BaseModel):
    """One togglable calendar feed shown in the grid."""

    id: str = Field(validation_alias=AliasChoices("id", "entity"))
    color: Optional[str] = None
    icon: Optional[str] = None
    label: Optional[str] = None
    priority: Optional[int] = None

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def display_name(self) -> str:
        return self.label or self.id
