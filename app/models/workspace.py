"""Pydantic model for the automation system a chat session talks to."""

from pydantic import BaseModel, ConfigDict, StringConstraints
from typing import Optional, Annotated


class Workspace(BaseModel):
    """Read-only description of the current automation system."""

    model_config = ConfigDict(frozen=True)

    slug: Annotated[str, StringConstraints(min_length=1)]
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    modal_url: Optional[str] = None

    @property
    def display_name(self) -> str:
        """Name shown to the user, derived from the slug when none is set."""
        if self.name:
            return self.name
        return " ".join(word[:1].upper() + word[1:] for word in self.slug.split("-"))
