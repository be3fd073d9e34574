from __future__ import annotations

import datetime as dt
import re
from typing import Callable, Optional, TextIO

from .errors import DateParseError, MalformedHeader
from .models import Article, ArticleType, Tag

DELIMITER = "---"
META_PREFIX = "meta-"
HUMAN_DATE_FMT = "%B %d, %Y at %I:%M%p"
RFC3339_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:\d{2})$"
)
TAG_SPLIT_RE = re.compile(r"[\s,;]+")

Renderer = Callable[[bytes], str]


def _is_delimiter(line: str) -> bool:
    return line.strip() == DELIMITER


def parse_front_matter(stream: TextIO) -> dict[str, str]:
    """Read the ``---`` delimited header from the start of ``stream``.

    Consumption stops right after the closing delimiter so the caller can
    read the body from the same stream. A header that is never closed simply
    runs to the end of the stream.
    """
    first = stream.readline().lstrip("\ufeff")
    if not _is_delimiter(first):
        raise MalformedHeader("Invalid front matter header")

    fields: dict[str, str] = {}
    while True:
        line = stream.readline()
        if not line or _is_delimiter(line):
            break
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        fields[key.strip()] = value.strip()
    return fields


def parse_date(value: str) -> dt.datetime:
    value = value.strip()
    if RFC3339_RE.match(value):
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            return dt.datetime.fromisoformat(value)
        except ValueError:
            pass
    try:
        parsed = dt.datetime.strptime(value, HUMAN_DATE_FMT)
    except ValueError:
        raise DateParseError(value) from None
    return parsed.replace(tzinfo=dt.timezone.utc)


def parse_tags(value: str) -> list[Tag]:
    tags = []
    for token in TAG_SPLIT_RE.split(value):
        if not token:
            continue
        tag = Tag.from_text(token)
        if tag.name:
            tags.append(tag)
    return tags


def build_article(
    fields: dict[str, str], body: bytes, renderer: Optional[Renderer] = None
) -> Article:
    article = Article(raw_content=body)
    date_modified = None

    for key, value in fields.items():
        if key.startswith(META_PREFIX):
            article.meta[key[len(META_PREFIX) :]] = value
            continue
        if key == "title":
            article.title = value
        elif key == "author":
            article.author = value
        elif key == "description":
            article.description = value
        elif key == "link":
            article.link = value
        elif key == "appid":
            article.app_id = value
        elif key == "draft":
            article.draft = value == "true"
        elif key == "type":
            article.type = ArticleType.parse(value)
        elif key == "tags":
            article.tags = parse_tags(value)
        elif key == "date":
            date_modified = parse_date(value)
        elif key == "updated":
            article.date_updated = parse_date(value)

    # Undated articles sort as the most recent ones.
    article.date_modified = date_modified or dt.datetime.now(dt.timezone.utc)

    if renderer is not None:
        article.rendered_content = renderer(body)
    if not article.description:
        article.description = article.rendered_content or body.decode("utf-8", errors="replace")
    return article


def read_article(stream: TextIO, renderer: Optional[Renderer] = None) -> Article:
    fields = parse_front_matter(stream)
    body = stream.read().encode("utf-8")
    return build_article(fields, body, renderer)


def format_front_matter(article: Article) -> str:
    """Header skeleton for a new article, as printed by ``--print``."""
    lines = [DELIMITER]
    if article.type != ArticleType.SNIPPET:
        lines.append(f"title: {article.title}")
    lines.append(f"author: {article.author}")
    lines.append(f"type: {article.type.value}")
    lines.append("tags: " + ", ".join(tag.original_text or tag.name for tag in article.tags))
    lines.append(f"date: {article.date_modified.isoformat(timespec='seconds')}")
    if article.date_updated is not None:
        lines.append(f"updated: {article.date_updated.isoformat(timespec='seconds')}")
    if article.app_id:
        lines.append(f"appid: {article.app_id}")
    for key, value in article.meta.items():
        lines.append(f"{META_PREFIX}{key}: {value}")
    if article.draft:
        lines.append("draft: true")
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n\n"
