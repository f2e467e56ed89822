"""
Schemas for retrieval output.

Documents arrive ordered by relevance; the pipeline never reorders
or edits them.
"""

from __future__ import annotations

from pydantic import BaseModel


class DocumentRecord(BaseModel):
    """One passage returned by the search collaborator."""
    id: str | None = None
    title: str
    content: str
    category: str | None = None
    source_page: str | None = None
    source_file: str | None = None

    class Config:
        frozen = True


class SupportingImageRecord(BaseModel):
    """One image returned by the image-capable search collaborator."""
    title: str = ""
    url: str

    class Config:
        frozen = True
