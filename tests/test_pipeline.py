import datetime as dt
from pathlib import Path

import pytest

from blogger.config import SiteConfig
from blogger.errors import StartupFatal
from blogger.pipeline import PublishPipeline, SourceFile, find_sources, source_name

PAGE_TEMPLATE = (
    "<html><head><title>{{title}}</title></head>"
    "<body><a href=\"{{root}}/\">{{site_title}}</a>{{content}}<footer>{{generated}}</footer></body></html>\n"
)
FEED_TEMPLATE = "<feed><title>{{title}}</title><updated>{{updated}}</updated>{{entries}}</feed>\n"

HELLO = """---
title: Hello World
author: Jane
date: 2024-01-15T10:00:00Z
tags: golang, -secret
---
# Hi
Some markdown.
"""


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def site(tmp_path):
    posts = tmp_path / "posts"
    templates = tmp_path / "templates"
    destination = tmp_path / "public"
    destination.mkdir()
    write(templates / "template.html", PAGE_TEMPLATE)
    write(templates / "feed.xml", FEED_TEMPLATE)
    config = SiteConfig(
        source_dirs=(posts,),
        templates_dir=templates,
        destination_dir=destination,
        title="Test Blog",
        root="/",
    )
    return config


def fixed_clock():
    return dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.timezone.utc)


def test_source_name_strips_post_extensions() -> None:
    assert source_name("hello.md") == "hello"
    assert source_name("hello.md.txt") == "hello"
    assert source_name("notes.draft.markdown") == "notes.draft"
    assert source_name("image.png") is None


def test_find_sources_sorted_and_filtered(tmp_path) -> None:
    posts = tmp_path / "posts"
    write(posts / "b.md", "")
    write(posts / "sub" / "a.txt", "")
    write(posts / "cover.png", "")

    sources = find_sources((posts, tmp_path / "missing"))

    assert [source.name for source in sources] == ["b", "a"]


def test_end_to_end_publish(site) -> None:
    posts = site.source_dirs[0]
    write(posts / "hello.md", HELLO)

    report = PublishPipeline(site, clock=fixed_clock).run()

    destination = site.destination_dir
    page = (destination / "2024" / "01" / "hello").read_text(encoding="utf-8")
    assert "<title>Hello World | Test Blog</title>" in page
    assert '<h1 id="hi">Hi</h1>' in page
    assert "tag-golang" in page
    assert "tag-_secret" not in page
    assert (destination / "tag-golang").exists()
    assert (destination / "tag-_secret").exists()
    assert "/2024/01/hello" in (destination / "index.html").read_text(encoding="utf-8")
    assert "Hello World" in (destination / "index.xml").read_text(encoding="utf-8")
    assert "<entry>" not in (destination / "snippets.xml").read_text(encoding="utf-8")
    assert report.article_count == 1
    assert report.ok
    assert sorted(report.written) == [
        "2024/01/hello",
        "index.html",
        "index.xml",
        "snippets.xml",
        "tag-_secret",
        "tag-golang",
    ]


def test_hidden_only_tag_gets_disguised_file_name(site) -> None:
    posts = site.source_dirs[0]
    write(posts / "hello.md", HELLO)

    report = PublishPipeline(site, clock=fixed_clock).run()

    assert "tag-_secret" in report.written
    assert "tag-secret" not in report.written


def test_drafts_and_pages(site) -> None:
    posts = site.source_dirs[0]
    write(posts / "wip.draft.md", "---\ntitle: Work in progress\ndate: 2024-02-01T00:00:00Z\n---\nbody\n")
    write(posts / "flagged.md", "---\ntitle: Flagged\ndraft: true\ntags: hush\n---\nbody\n")
    write(posts / "about.md", "---\ntitle: About me\ntype: Page\ntags: me\n---\nabout\n")
    write(posts / "note.md", "---\ntype: Snippet\ndate: 2024-03-01T00:00:00Z\n---\nshort note\n")

    report = PublishPipeline(site, clock=fixed_clock).run()

    destination = site.destination_dir
    assert (destination / "drafts" / "wip.draft").exists()
    assert (destination / "drafts" / "flagged").exists()
    assert (destination / "about").exists()
    assert (destination / "2024" / "03" / "note").exists()
    index = (destination / "index.html").read_text(encoding="utf-8")
    assert "Work in progress" not in index
    assert "Flagged" not in index
    assert "About me" not in index
    assert "short note" in index
    assert "short note" in (destination / "snippets.xml").read_text(encoding="utf-8")
    assert not (destination / "tag-hush").exists()
    assert not (destination / "tag-me").exists()
    assert report.article_count == 4


def test_bad_files_are_skipped(site) -> None:
    posts = site.source_dirs[0]
    write(posts / "good.md", "---\ntitle: Good\ndate: 2024-01-15T10:00:00Z\n---\nfine\n")
    write(posts / "bad-date.md", "---\ntitle: Bad\ndate: yesterday\n---\n")
    write(posts / "no-header.md", "just text\n")
    (posts / "binary.md").write_bytes(b"---\ntitle: \xff\xfe\n---\n")

    report = PublishPipeline(site, clock=fixed_clock).run()

    assert (site.destination_dir / "2024" / "01" / "good").exists()
    assert report.article_count == 1
    assert set(report.skipped) == {
        (posts / "bad-date.md").as_posix(),
        (posts / "no-header.md").as_posix(),
        (posts / "binary.md").as_posix(),
    }


def test_write_failures_do_not_stop_the_run(site) -> None:
    posts = site.source_dirs[0]
    write(posts / "hello.md", HELLO)
    # A plain file where the year directory should go.
    (site.destination_dir / "2024").write_text("", encoding="utf-8")

    report = PublishPipeline(site, clock=fixed_clock).run()

    assert report.failed_writes == ["2024/01/hello"]
    assert (site.destination_dir / "index.html").exists()
    assert (site.destination_dir / "tag-golang").exists()


def test_unwritable_tag_name_does_not_stop_the_run(site) -> None:
    posts = site.source_dirs[0]
    write(posts / "good.md", "---\ntitle: Good\ndate: 2024-01-15T10:00:00Z\ntags: zzz\n---\nfine\n")
    write(posts / "bad.md", "---\ntitle: Bad\ndate: 2024-01-16T10:00:00Z\ntags: a\x00b\n---\nfine\n")

    report = PublishPipeline(site, clock=fixed_clock).run()

    assert report.failed_writes == ["tag-a\x00b"]
    assert (site.destination_dir / "tag-zzz").exists()
    assert (site.destination_dir / "index.html").exists()
    assert (site.destination_dir / "2024" / "01" / "bad").exists()


def test_extension_and_author_defaults(site) -> None:
    config = SiteConfig(
        source_dirs=site.source_dirs,
        templates_dir=site.templates_dir,
        destination_dir=site.destination_dir,
        title="Test Blog",
        extension=".html",
        root="/blog/",
        author="Default Author",
    )
    write(config.source_dirs[0] / "post.md", "---\ntitle: T\ndate: 2024-05-05T05:05:05Z\ntags: x\n---\nbody\n")

    PublishPipeline(config, clock=fixed_clock).run()

    page = (config.destination_dir / "2024" / "05" / "post.html").read_text(encoding="utf-8")
    assert "Default Author" in page
    assert 'href="/blog/tag-x.html"' in page
    assert (config.destination_dir / "tag-x.html").exists()


def test_rebuild_is_idempotent_for_article_pages(site) -> None:
    posts = site.source_dirs[0]
    write(posts / "hello.md", HELLO)
    target = site.destination_dir / "2024" / "01" / "hello"

    PublishPipeline(site).run()
    first = target.read_bytes()
    PublishPipeline(site).run()

    assert target.read_bytes() == first


def test_missing_destination_is_fatal(site, tmp_path) -> None:
    config = SiteConfig(
        source_dirs=site.source_dirs,
        templates_dir=site.templates_dir,
        destination_dir=tmp_path / "nowhere",
    )
    with pytest.raises(StartupFatal):
        PublishPipeline(config).run()


def test_broken_template_is_fatal_before_any_write(site) -> None:
    write(site.source_dirs[0] / "hello.md", HELLO)
    write(site.templates_dir / "template.html", "<html>{{title}</html>")

    with pytest.raises(StartupFatal):
        PublishPipeline(site).run()

    assert list(site.destination_dir.iterdir()) == []


def test_custom_renderer(site) -> None:
    write(site.source_dirs[0] / "hello.md", HELLO)

    PublishPipeline(site, renderer=lambda raw: "<p>RENDERED</p>", clock=fixed_clock).run()

    page = (site.destination_dir / "2024" / "01" / "hello").read_text(encoding="utf-8")
    assert "<p>RENDERED</p>" in page


def test_read_source_keeps_crlf_line_endings(site) -> None:
    path = site.source_dirs[0] / "crlf.md"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"---\r\ntitle: Windows\r\ndate: 2024-01-15T10:00:00Z\r\n---\r\nline1\r\nline2\r\n")

    article = PublishPipeline(site).read_source(SourceFile("crlf", path))

    assert article.title == "Windows"
    assert article.raw_content == b"line1\r\nline2\r\n"


def test_tag_chips_only_link_to_published_tag_pages(site) -> None:
    posts = site.source_dirs[0]
    write(posts / "about.md", "---\ntitle: About me\ntype: Page\ntags: me, solo\n---\nabout\n")
    write(posts / "post.md", "---\ntitle: Post\ndate: 2024-01-15T10:00:00Z\ntags: -me\n---\nbody\n")

    PublishPipeline(site, clock=fixed_clock).run()

    destination = site.destination_dir
    about = (destination / "about").read_text(encoding="utf-8")
    assert (destination / "tag-_me").exists()
    assert not (destination / "tag-me").exists()
    assert 'href="/tag-_me"' in about
    assert 'href="/tag-me"' not in about
    assert '<span class="chip">solo</span>' in about
    assert "tag-solo" not in about
