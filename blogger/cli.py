from __future__ import annotations

import argparse
import datetime as dt
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import SiteConfig, load_config, split_dirs
from .content import format_front_matter
from .errors import StartupFatal
from .models import Article, ArticleType
from .pipeline import PublishPipeline
from .utils import parse_bool, parse_float, parse_int
from .watch import WatchSupervisor

logger = logging.getLogger("blogger.cli")

PRINT_CHOICES = ("post", "page", "snippet")


def skeleton_article(kind: str, author: str) -> Article:
    article = Article(
        draft=True,
        author=author,
        date_modified=dt.datetime.now(dt.timezone.utc).replace(microsecond=0)
        + dt.timedelta(minutes=15),
    )
    if kind == "page":
        article.title = "Hello world"
        article.type = ArticleType.PAGE
    elif kind == "post":
        article.title = "Blog post"
        article.type = ArticleType.POST
    else:
        article.type = ArticleType.SNIPPET
    return article


def build_config(args: argparse.Namespace) -> SiteConfig:
    return SiteConfig(
        source_dirs=split_dirs(args.posts),
        templates_dir=Path(args.templates),
        destination_dir=Path(args.destination),
        title=args.title,
        extension=args.extension,
        root=args.root,
        author=args.author,
        feed_limit=max(0, args.feed_limit),
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="blog.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args(argv)
    config = load_config(Path(pre_args.config))

    def cfg_str(key: str, default: str) -> str:
        value = config.get(key)
        return default if value is None else str(value)

    def cfg_bool(key: str, default: bool) -> bool:
        value = config.get(key)
        return default if value is None else parse_bool(value)

    def cfg_int(key: str, default: int) -> int:
        return parse_int(config.get(key), default)

    def cfg_float(key: str, default: float) -> float:
        return parse_float(config.get(key), default)

    parser = argparse.ArgumentParser(description="Static blog generator for front matter articles.")
    parser.add_argument("--config", default=pre_args.config, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument(
        "--posts",
        default=cfg_str("posts", "posts"),
        help="Posts directory, comma separated for multiple directories.",
    )
    parser.add_argument("--templates", default=cfg_str("templates", "templates"), help="Templates directory.")
    parser.add_argument(
        "--destination", default=cfg_str("destination", "destination"), help="Destination directory."
    )
    parser.add_argument("--title", default=cfg_str("title", "blog"), help="Blog title.")
    parser.add_argument("--extension", default=cfg_str("extension", ""), help="Destination file extension.")
    parser.add_argument("--root", default=cfg_str("root", "/"), help="Site root path.")
    parser.add_argument("--author", default=cfg_str("author", ""), help="Default post author.")
    parser.add_argument(
        "--feed-limit",
        default=cfg_int("feed_limit", 0),
        type=int,
        help="Maximum number of entries per feed (0 = no limit).",
    )
    parser.add_argument(
        "--print",
        dest="print_kind",
        choices=PRINT_CHOICES,
        default=None,
        help="Print out a header template for a snippet, blog post or a page.",
    )
    parser.add_argument(
        "--listen",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("listen", False),
        help="Listen to changes in post and template directories and regenerate.",
    )
    parser.add_argument(
        "--interval",
        default=cfg_float("interval", 1.0),
        type=float,
        help="Seconds between change checks while listening.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.print_kind:
        print(format_front_matter(skeleton_article(args.print_kind, args.author)), end="")
        return 0

    pipeline = PublishPipeline(build_config(args))
    try:
        report = pipeline.run()
    except StartupFatal as exc:
        logger.error("%s", exc)
        return 1
    print(f"Build completed in {report.elapsed:.2f}s.")
    print(f"Site generated in: {args.destination}")

    if args.listen:
        WatchSupervisor(pipeline, interval=args.interval).serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
