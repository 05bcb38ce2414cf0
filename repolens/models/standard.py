"""Coding standard model."""

from pydantic import Field

from repolens.models.base import DomainModel, new_id


class Standard(DomainModel):
    """A coding standard or architectural rule."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    category: str = "General"
    tech_stack: str = "General"
    priority: str = "Medium"
    is_from_existing_docs: bool = False
    source_file: str = ""
    examples: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
