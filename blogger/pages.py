from __future__ import annotations

import datetime as dt
import html

from .config import SiteConfig
from .models import Article, ArticleType, Tag
from .render import Template, summarize
from .utils import iso_date, join_url, long_date, short_date, tag_index_name

PAGE_PLACEHOLDERS = {"title", "site_title", "root", "content", "generated"}
PAGE_REQUIRED = {"title", "content"}
FEED_PLACEHOLDERS = {"title", "root", "file", "updated", "entries"}
FEED_REQUIRED = {"entries"}

INDEX_FILE = "index.html"
FEED_FILE = "index.xml"
SNIPPET_FEED_FILE = "snippets.xml"


def article_url(article: Article, config: SiteConfig) -> str:
    return join_url(config.prefix, article.full_path)


def build_tag_links(tags: list[Tag], config: SiteConfig, tag_pages: dict[str, str]) -> str:
    """Chips for ``tags``; only tags listed in ``tag_pages`` become links."""
    chips = []
    for tag in tags:
        label = html.escape(tag.name)
        file_name = tag_pages.get(tag.name)
        if file_name is None:
            chips.append(f'<span class="chip">{label}</span>')
            continue
        href = f"{config.prefix}/{tag_index_name(file_name, config.extension)}"
        chips.append(f'<a class="chip" href="{href}">{label}</a>')
    return " ".join(chips)


def build_article_cards(
    articles: list[Article], config: SiteConfig, tag_pages: dict[str, str]
) -> str:
    cards = []
    for article in articles:
        url = article_url(article, config)
        tag_links = build_tag_links(article.visible_tags(), config, tag_pages)
        if article.type == ArticleType.SNIPPET:
            heading = ""
            summary = article.rendered_content
        else:
            heading = f'<h2 class="post-title"><a href="{url}">{html.escape(article.title)}</a></h2>'
            summary = f'<p class="post-summary">{html.escape(summarize(article.description))}</p>'
        cards.append(
            f'<article class="post-card post-card--{article.type.value.lower()}">'
            '<div class="post-meta">'
            f'<a class="post-date" href="{url}">{short_date(article.date_modified)}</a>'
            f'<div class="post-tags">{tag_links}</div></div>'
            f"{heading}"
            f"{summary}"
            "</article>"
        )
    return "\n".join(cards)


def _page_context(title: str, content: str, config: SiteConfig, generated: str) -> dict[str, str]:
    return {
        "title": html.escape(title),
        "site_title": html.escape(config.title),
        "root": config.prefix,
        "content": content,
        "generated": generated,
    }


def render_index_page(
    template: Template,
    articles: list[Article],
    config: SiteConfig,
    now: dt.datetime,
    tag_pages: dict[str, str],
) -> str:
    content = f'<div class="post-grid">{build_article_cards(articles, config, tag_pages)}</div>'
    return template.execute(_page_context(config.title, content, config, iso_date(now)))


def render_tag_page(
    template: Template,
    name: str,
    articles: list[Article],
    config: SiteConfig,
    now: dt.datetime,
    tag_pages: dict[str, str],
) -> str:
    content = (
        '<div class="section-head">'
        f"<h2>Tag: {html.escape(name)}</h2>"
        "</div>"
        f'<div class="post-grid">{build_article_cards(articles, config, tag_pages)}</div>'
    )
    title = f"Tag: {name} | {config.title}"
    return template.execute(_page_context(title, content, config, iso_date(now)))


def render_article_page(
    template: Template, article: Article, config: SiteConfig, tag_pages: dict[str, str]
) -> str:
    """Full page for one article.

    Depends only on its arguments, with no clock reading, so that rebuilding
    an unchanged tree reproduces the page exactly. Tag chips link only to
    tag pages listed in ``tag_pages``.
    """
    updated_html = ""
    if article.date_updated is not None:
        updated_html = f'<span class="post-updated">Updated {long_date(article.date_updated)}</span>'
    author_html = ""
    if article.author:
        author_html = f'<span class="post-author">{html.escape(article.author)}</span>'
    title_html = ""
    if article.type != ArticleType.SNIPPET and article.title:
        title_html = f'<h1 class="post-title">{html.escape(article.title)}</h1>'
    link_html = ""
    if article.link:
        link_html = f'<a class="post-link" href="{html.escape(article.link)}">{html.escape(article.link)}</a>'
    content = (
        f'<article class="post post--{article.type.value.lower()}">'
        '<div class="post-meta">'
        f'<span class="post-date">{long_date(article.date_modified)}</span>'
        f"{updated_html}"
        f"{author_html}"
        f'<div class="post-tags">{build_tag_links(article.visible_tags(), config, tag_pages)}</div></div>'
        f"{title_html}"
        f'<div class="post-body">{article.rendered_content}</div>'
        f"{link_html}"
        f'<div class="post-footer"><a href="{config.prefix}/{INDEX_FILE}">Back to home</a></div>'
        "</article>"
    )
    title = f"{article.title} | {config.title}" if article.title else config.title
    return template.execute(_page_context(title, content, config, ""))


def render_feed(
    template: Template,
    articles: list[Article],
    config: SiteConfig,
    file_name: str,
    now: dt.datetime,
) -> str:
    if config.feed_limit > 0:
        articles = articles[: config.feed_limit]
    entries = []
    for article in articles:
        link = article_url(article, config)
        updated = article.date_updated or article.date_modified
        author = ""
        if article.author:
            author = f"<author><name>{html.escape(article.author)}</name></author>"
        entries.append(
            "\n".join(
                [
                    "<entry>",
                    f"<title>{html.escape(article.title)}</title>",
                    f'<link href="{html.escape(link)}" />',
                    f"<id>{html.escape(link)}</id>",
                    f"<published>{iso_date(article.date_modified)}</published>",
                    f"<updated>{iso_date(updated)}</updated>",
                    author,
                    f'<content type="html">{html.escape(article.rendered_content)}</content>',
                    "</entry>",
                ]
            )
        )
    return template.execute(
        {
            "title": html.escape(config.title),
            "root": config.prefix,
            "file": file_name,
            "updated": iso_date(now),
            "entries": "\n".join(entries),
        }
    )
