"""Data model shared by the parser, the corpus and the page builders."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum


class ArticleType(str, Enum):
    POST = "Post"
    PAGE = "Page"
    SNIPPET = "Snippet"

    @classmethod
    def parse(cls, value: str) -> "ArticleType":
        for member in cls:
            if member.value == value:
                return member
        return cls.POST


@dataclass(frozen=True, eq=False)
class Tag:
    """A normalized tag.

    Identity is the lowercased name only, so ``Tag.from_text("Go")`` and
    ``Tag.from_text("-go")`` compare equal even though one of them is hidden.
    """

    name: str
    original_text: str = ""
    hidden: bool = False

    @classmethod
    def from_text(cls, text: str) -> "Tag":
        prepared = text.lower()
        name = prepared[1:] if prepared.startswith("-") else prepared
        return cls(name=name, original_text=text, hidden=name != prepared)

    @property
    def file_name(self) -> str:
        if self.hidden:
            return f"_{self.name}"
        return self.name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tag):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


@dataclass
class Article:
    """One parsed source document: a post, a page or a snippet."""

    title: str = ""
    author: str = ""
    description: str = ""
    link: str = ""
    identifier: str = ""
    app_id: str = ""
    type: ArticleType = ArticleType.POST
    date_modified: dt.datetime = field(default_factory=_utcnow)
    date_updated: dt.datetime | None = None
    tags: list[Tag] = field(default_factory=list)
    draft: bool = False
    meta: dict[str, str] = field(default_factory=dict)
    raw_content: bytes = b""
    rendered_content: str = ""
    filename: str = ""

    def has_tag(self, name: str) -> bool:
        return any(tag.name == name for tag in self.tags)

    def visible_tags(self) -> list[Tag]:
        return [tag for tag in self.tags if not tag.hidden]

    @property
    def base_path(self) -> str:
        from .utils import article_base_path

        return article_base_path(self.type, self.draft, self.date_modified)

    @property
    def full_path(self) -> str:
        from .utils import resolve_path

        return resolve_path(self.type, self.draft, self.date_modified, self.filename)


@dataclass
class BuildReport:
    """Outcome of one publishing run."""

    written: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)
    failed_renders: list[str] = field(default_factory=list)
    failed_writes: list[str] = field(default_factory=list)
    article_count: int = 0
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return not (self.skipped or self.failed_renders or self.failed_writes)
