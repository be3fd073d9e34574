"""In-memory collection of the articles of one publishing run."""

from __future__ import annotations

from typing import Callable, Iterable

from .models import Article, ArticleType, Tag


def sort_recent_first(articles: Iterable[Article]) -> list[Article]:
    # sorted() is stable, so equal timestamps keep their scan order.
    return sorted(articles, key=lambda article: article.date_modified, reverse=True)


class Corpus:
    """Owns every article parsed in a run and derives the published views.

    Views are rebuilt on every call and never cached; a corpus lives for a
    single run and the next run starts from an empty one.
    """

    def __init__(self) -> None:
        self._articles: list[Article] = []

    def __len__(self) -> int:
        return len(self._articles)

    def add(self, article: Article) -> None:
        self._articles.append(article)

    def _view(self, predicate: Callable[[Article], bool]) -> list[Article]:
        return sort_recent_first(article for article in self._articles if predicate(article))

    def all(self) -> list[Article]:
        return sort_recent_first(self._articles)

    def index(self) -> list[Article]:
        return self._view(
            lambda a: not a.draft and a.type in (ArticleType.POST, ArticleType.SNIPPET)
        )

    def feed(self) -> list[Article]:
        return self._view(lambda a: not a.draft and a.type == ArticleType.POST)

    def snippet_feed(self) -> list[Article]:
        return self._view(lambda a: not a.draft and a.type == ArticleType.SNIPPET)

    def by_tag(self, name: str) -> list[Article]:
        return [article for article in self.index() if article.has_tag(name)]

    def tag_names(self) -> list[str]:
        names = {tag.name for article in self.index() for tag in article.tags}
        return sorted(names)

    def tag_hidden(self, name: str) -> bool:
        """True when every occurrence of ``name`` in the index is hidden."""
        occurrences = [
            tag for article in self.index() for tag in article.tags if tag.name == name
        ]
        return bool(occurrences) and all(tag.hidden for tag in occurrences)

    def tag_pages(self) -> dict[str, str]:
        """Map each tag with a published page to the file name of that page."""
        return {
            name: Tag(name, hidden=self.tag_hidden(name)).file_name for name in self.tag_names()
        }
