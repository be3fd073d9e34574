"""One full publishing run: scan, parse, classify, render and write."""

from __future__ import annotations

import datetime as dt
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .cache import list_files
from .config import DRAFT_SUFFIX, FEED_TEMPLATE, PAGE_TEMPLATE, POST_EXTENSIONS, SiteConfig
from .content import Renderer, read_article
from .corpus import Corpus
from .errors import (
    BloggerError,
    RenderFailure,
    SourceUnreadable,
    StartupFatal,
    TemplateError,
    WriteFailure,
)
from .models import Article, BuildReport
from .pages import (
    FEED_FILE,
    FEED_PLACEHOLDERS,
    FEED_REQUIRED,
    INDEX_FILE,
    PAGE_PLACEHOLDERS,
    PAGE_REQUIRED,
    SNIPPET_FEED_FILE,
    render_article_page,
    render_feed,
    render_index_page,
    render_tag_page,
)
from .render import RenderOptions, Template, load_template, render_markdown, write_bytes
from .utils import tag_index_name

logger = logging.getLogger("blogger.pipeline")


@dataclass(frozen=True)
class SourceFile:
    name: str
    path: Path


def source_name(filename: str) -> Optional[str]:
    """Strip every trailing post extension, or return None for other files."""
    ext = Path(filename).suffix
    if ext not in POST_EXTENSIONS:
        return None
    while ext in POST_EXTENSIONS:
        filename = filename[: -len(ext)]
        ext = Path(filename).suffix
    return filename


def find_sources(source_dirs: tuple[Path, ...]) -> list[SourceFile]:
    sources = []
    for source_dir in source_dirs:
        if not source_dir.is_dir():
            logger.warning("Post directory %s not found", source_dir)
            continue
        for path in sorted(list_files(source_dir), key=lambda p: p.as_posix()):
            name = source_name(path.name)
            if name:
                sources.append(SourceFile(name=name, path=path))
    return sources


class PublishPipeline:
    def __init__(
        self,
        config: SiteConfig,
        renderer: Optional[Renderer] = None,
        clock: Optional[Callable[[], dt.datetime]] = None,
    ) -> None:
        self.config = config
        self.render_options = RenderOptions(root=config.prefix)
        self.renderer = renderer or self._render_markdown
        self.clock = clock or (lambda: dt.datetime.now(dt.timezone.utc))

    def _render_markdown(self, raw: bytes) -> str:
        return render_markdown(raw, self.render_options)

    def check_destination(self) -> Path:
        destination = self.config.destination_dir
        if not destination.is_dir():
            raise StartupFatal(f"Destination directory could not be opened: {destination}")
        return destination

    def load_templates(self) -> tuple[Template, Template]:
        templates_dir = self.config.templates_dir
        try:
            page = load_template(templates_dir / PAGE_TEMPLATE, PAGE_REQUIRED, PAGE_PLACEHOLDERS)
            feed = load_template(templates_dir / FEED_TEMPLATE, FEED_REQUIRED, FEED_PLACEHOLDERS)
        except TemplateError as exc:
            raise StartupFatal(str(exc)) from exc
        return page, feed

    def read_source(self, source: SourceFile) -> Article:
        try:
            with source.path.open("r", encoding="utf-8", newline="") as handle:
                article = read_article(handle, self.renderer)
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceUnreadable(str(exc)) from exc
        article.filename = source.name + self.config.extension
        article.identifier = source.name
        if source.name.endswith(DRAFT_SUFFIX):
            article.draft = True
        if not article.author:
            article.author = self.config.author
        return article

    def collect(self, sources: list[SourceFile], report: BuildReport) -> Corpus:
        corpus = Corpus()
        for source in sources:
            try:
                article = self.read_source(source)
            except BloggerError as exc:
                logger.warning("Skipping %s: %s", source.path, exc)
                report.skipped[source.path.as_posix()] = str(exc)
                continue
            corpus.add(article)
        return corpus

    def render_outputs(
        self, corpus: Corpus, page: Template, feed: Template, report: BuildReport
    ) -> list[tuple[str, str]]:
        now = self.clock()
        config = self.config
        tag_pages = corpus.tag_pages()
        jobs: list[tuple[str, Callable[[], str]]] = [
            (INDEX_FILE, lambda: render_index_page(page, corpus.index(), config, now, tag_pages)),
            (FEED_FILE, lambda: render_feed(feed, corpus.feed(), config, FEED_FILE, now)),
            (
                SNIPPET_FEED_FILE,
                lambda: render_feed(feed, corpus.snippet_feed(), config, SNIPPET_FEED_FILE, now),
            ),
        ]
        for article in corpus.all():
            jobs.append(
                (article.full_path, lambda a=article: render_article_page(page, a, config, tag_pages))
            )
        for name, file_name in tag_pages.items():
            jobs.append(
                (
                    tag_index_name(file_name, config.extension),
                    lambda n=name: render_tag_page(page, n, corpus.by_tag(n), config, now, tag_pages),
                )
            )

        outputs = []
        for rel_path, job in jobs:
            try:
                outputs.append((rel_path, job()))
            except RenderFailure as exc:
                logger.warning("Could not render %s: %s", rel_path, exc)
                report.failed_renders.append(rel_path)
        return outputs

    def write_outputs(
        self, destination: Path, outputs: list[tuple[str, str]], report: BuildReport
    ) -> None:
        for rel_path, text in outputs:
            try:
                write_bytes(destination / rel_path, text.encode("utf-8"))
            except WriteFailure as exc:
                logger.warning("%s", exc)
                report.failed_writes.append(rel_path)
                continue
            report.written.append(rel_path)

    def run(self) -> BuildReport:
        start = time.perf_counter()
        logger.info("Generating blog: %s", self.config.title)
        destination = self.check_destination()
        page, feed = self.load_templates()

        report = BuildReport()
        corpus = self.collect(find_sources(self.config.source_dirs), report)
        report.article_count = len(corpus)
        outputs = self.render_outputs(corpus, page, feed, report)
        self.write_outputs(destination, outputs, report)
        report.elapsed = time.perf_counter() - start
        logger.info(
            "Published %d articles, wrote %d files in %.2fs",
            report.article_count,
            len(report.written),
            report.elapsed,
        )
        return report
