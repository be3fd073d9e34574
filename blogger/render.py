from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from pathlib import Path

import markdown

from .errors import RenderFailure, TemplateError, WriteFailure

SUMMARY_LIMIT = 200
TAG_RE = re.compile(r"<[^>]+>")
LINK_ATTR_RE = re.compile(r'\b(src|href)="([^"]+)"', re.IGNORECASE)
PLACEHOLDER_RE = re.compile(r"{{\s*([A-Za-z_][A-Za-z0-9_]*)\s*}}")
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "footnotes", "toc", "smarty", "codehilite"]


@dataclass(frozen=True)
class RenderOptions:
    root: str = ""
    extensions: tuple[str, ...] = tuple(MARKDOWN_EXTENSIONS)
    extension_configs: dict = field(
        default_factory=lambda: {"codehilite": {"guess_lang": False}}
    )


def fix_relative_links(html_text: str, root: str) -> str:
    """Prefix local ``src``/``href`` targets with the site root.

    Articles are published a few directories deep, so a bare ``images/a.png``
    or ``/about.html`` has to be anchored at the configured root.
    """

    def repl(match: re.Match) -> str:
        attr = match.group(1)
        target = match.group(2)
        if "://" in target or target.startswith(("mailto:", "data:", "#", "./", "../")):
            return match.group(0)
        return f'{attr}="{root}/{target.lstrip("/")}"'

    return LINK_ATTR_RE.sub(repl, html_text)


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def summarize(text: str, limit: int = SUMMARY_LIMIT) -> str:
    summary = html.unescape(strip_tags(text)).strip().replace("\n", " ")
    return summary[:limit] + ("..." if len(summary) > limit else "")


def render_markdown(raw: bytes, options: RenderOptions) -> str:
    md = markdown.Markdown(
        extensions=list(options.extensions),
        extension_configs=options.extension_configs,
    )
    try:
        html_content = md.convert(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise RenderFailure(f"Markdown rendering failed: {exc}") from exc
    return fix_relative_links(html_content, options.root)


class Template:
    """A ``{{name}}`` placeholder template, checked when it is compiled."""

    def __init__(self, name: str, text: str, placeholders: frozenset[str]) -> None:
        self.name = name
        self.text = text
        self.placeholders = placeholders

    @classmethod
    def compile(
        cls, name: str, text: str, required: set[str], allowed: set[str] | None = None
    ) -> "Template":
        leftover = PLACEHOLDER_RE.sub("", text)
        if "{{" in leftover or "}}" in leftover:
            raise TemplateError(f"{name}: malformed placeholder")
        placeholders = frozenset(PLACEHOLDER_RE.findall(text))
        missing = required - placeholders
        if missing:
            raise TemplateError(f"{name}: missing placeholders {', '.join(sorted(missing))}")
        if allowed is not None:
            unknown = placeholders - allowed
            if unknown:
                raise TemplateError(f"{name}: unknown placeholders {', '.join(sorted(unknown))}")
        return cls(name, text, placeholders)

    def execute(self, context: dict[str, str]) -> str:
        missing = self.placeholders - context.keys()
        if missing:
            raise TemplateError(f"{self.name}: no value for {', '.join(sorted(missing))}")
        # Single pass, so placeholder-looking text inside values is left alone.
        return PLACEHOLDER_RE.sub(lambda m: context[m.group(1)], self.text)


def read_template(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def load_template(
    path: Path, required: set[str], allowed: set[str] | None = None
) -> Template:
    try:
        text = read_template(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateError(f"Could not read template {path}: {exc}") from exc
    return Template.compile(path.name, text, required, allowed)


def write_bytes(path: Path, data: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except (OSError, ValueError) as exc:
        raise WriteFailure(f"Could not write file {path}: {exc}") from exc
