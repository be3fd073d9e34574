from __future__ import annotations

import json
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path

import yaml

from .utils import site_prefix

PAGE_TEMPLATE = "template.html"
FEED_TEMPLATE = "feed.xml"
POST_EXTENSIONS = (".md", ".markdown", ".txt")
DRAFT_SUFFIX = ".draft"


@dataclass(frozen=True)
class SiteConfig:
    """Everything one publishing run needs, resolved once up front."""

    source_dirs: tuple[Path, ...] = (Path("posts"),)
    templates_dir: Path = Path("templates")
    destination_dir: Path = Path("destination")
    title: str = "blog"
    extension: str = ""
    root: str = "/"
    author: str = ""
    feed_limit: int = 0

    @property
    def prefix(self) -> str:
        return site_prefix(self.root)

    @property
    def watched_dirs(self) -> tuple[Path, ...]:
        return self.source_dirs + (self.templates_dir,)


def split_dirs(value: str) -> tuple[Path, ...]:
    return tuple(Path(item.strip()) for item in value.split(",") if item.strip())


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be a mapping: {path}", file=sys.stderr)
        sys.exit(1)
    return data
