"""
Shared data models for app ideas.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from ideaforge.constants import NOT_SPECIFIED, UNTITLED_APP


def as_bullets(text: str) -> str:
    """Turn newline separated entries into a markdown bullet list."""
    lines = [line.strip() for line in (text or "").split("\n") if line.strip()]
    if not lines:
        return f"- {NOT_SPECIFIED}"
    return "\n".join(f"- {line}" for line in lines)


class AppIdea(BaseModel):
    """Model representing the structured idea form."""

    name: str = Field("", description="The app's name")
    purpose: str = Field("", description="What the app does")
    target_audience: str = Field("", description="Who will use the app")
    main_features: str = Field("", description="Newline separated list of features")
    design_notes: str = Field("", description="Newline separated design guidance")
    monetization: str = Field("", description="How the app could make money")
    id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def has_subject(self) -> bool:
        """An idea is usable once it has at least a name or a purpose."""
        return bool(self.name.strip() or self.purpose.strip())

    def summary(self) -> str:
        """Short labelled summary used for grounding retrieval."""
        return (
            f"App Name: {self.name or UNTITLED_APP}\n"
            f"Purpose: {self.purpose or NOT_SPECIFIED}\n"
            f"Target Audience: {self.target_audience or NOT_SPECIFIED}\n"
            f"Main Features: {self.main_features or NOT_SPECIFIED}\n"
            f"Monetization: {self.monetization or NOT_SPECIFIED}"
        )

    def form_fields(self) -> dict:
        return self.model_dump(include=set(IDEA_FORM_FIELDS))


IDEA_FORM_FIELDS: List[str] = [
    "name",
    "purpose",
    "target_audience",
    "main_features",
    "design_notes",
    "monetization",
]
