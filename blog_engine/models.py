"""
Data models for the blog engine.
"""
from dataclasses import dataclass, field
from typing import Dict, List


@dataclass
class Post:
    """
    A single blog post as held by a post store.
    """
    id: str
    title: str
    body: str = ""
    date: str = ""  # ISO-8601 timestamp
    published: bool = False

    @property
    def is_draft(self):
        """Check if this post is still unpublished."""
        return not self.published

    def to_record(self) -> Dict:
        """Serialise to the plain dict stored by the backends."""
        return {
            'id': self.id,
            'title': self.title,
            'body': self.body,
            'date': self.date,
            'published': self.published,
        }

    @classmethod
    def from_record(cls, record: Dict):
        """
        Create a Post from a record returned by a store backend.
        """
        return cls(
            id=str(record.get('id', '')),
            title=record.get('title') or '',
            body=record.get('body') or '',
            date=record.get('date') or '',
            published=bool(record.get('published', False)),
        )


@dataclass
class RenderedPost:
    """
    A post prepared for display: formatted date, HTML body and excerpt.
    """
    id: str
    title: str
    date: str  # human readable, e.g. "October 18, 2026"
    html: str
    excerpt: str
    published: bool = False


@dataclass
class ExtractedChunks:
    """
    Verbatim SVG and math spans pulled out of a post body before parsing.

    Lives for a single render call only.
    """
    svg: List[str] = field(default_factory=list)
    math: List[str] = field(default_factory=list)
    literal: List[str] = field(default_factory=list)  # authored placeholder look-alikes

    def __len__(self):
        return len(self.svg) + len(self.math) + len(self.literal)
