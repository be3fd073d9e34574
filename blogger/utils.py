from __future__ import annotations

import datetime as dt
import posixpath

from .models import ArticleType

DRAFTS_DIR = "drafts"
TAG_INDEX_PREFIX = "tag-"


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def parse_float(value: object, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return default


def site_prefix(root: str) -> str:
    """Site root without its trailing slash, ready to have paths appended."""
    return root.rstrip("/")


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def article_base_path(article_type: ArticleType, draft: bool, date_modified: dt.datetime) -> str:
    """Directory an article is published under, relative to the site root.

    Pages live at the root. Posts and snippets go to ``drafts`` while they
    are drafts and to ``YYYY/MM`` once published. Anything else falls back to
    the root so an odd type never breaks a run.
    """
    if article_type in (ArticleType.POST, ArticleType.SNIPPET):
        if draft:
            return DRAFTS_DIR
        return f"{date_modified.year:04d}/{date_modified.month:02d}"
    return ""


def resolve_path(
    article_type: ArticleType, draft: bool, date_modified: dt.datetime, filename: str
) -> str:
    base = article_base_path(article_type, draft, date_modified)
    if not base:
        return filename
    return posixpath.join(base, filename)


def tag_index_name(tag_file_name: str, extension: str) -> str:
    return f"{TAG_INDEX_PREFIX}{tag_file_name}{extension}"


def iso_date(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.isoformat(timespec="seconds").replace("+00:00", "Z")


def long_date(value: dt.datetime) -> str:
    return value.strftime("%A, %d %B %Y, %H:%M")


def short_date(value: dt.datetime) -> str:
    return value.strftime("%b %d, %Y")
