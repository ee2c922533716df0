"""Data handed from the HTTP layer to the HTML renderer."""

from typing import List

from pydantic import BaseModel, Field


class VanityPage(BaseModel):
    """Values substituted into the go-import / go-source page."""

    import_path: str = Field(..., description="Host plus matched route path")
    subpath: str = Field(default="", description="Request remainder below the route")
    repo: str = Field(..., min_length=1)
    display: str = ""
    vcs: str


class IndexPage(BaseModel):
    """Values substituted into the index page served at the root."""

    host: str
    handlers: List[str] = Field(default_factory=list)
