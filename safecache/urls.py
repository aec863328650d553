"""
Purge URL sets

Every cached surface that shows a post's comment area: the permalink in both
trailing-slash forms, the home page and the RSS feed.
"""

from typing import Callable, Iterable, List, Optional

from safecache.models import ContentItem
from safecache.ports import ContentStore


UrlTransform = Callable[[List[str], ContentItem], Iterable[str]]


def toggle_trailing_slash(url: str) -> str:
    """The other slash variant of a URL; the edge may hold either."""
    if url.endswith("/"):
        return url.rstrip("/")
    return url + "/"


def unique_urls(urls: Iterable[Optional[str]]) -> List[str]:
    """Drop empty and duplicate entries, keeping first-seen order."""
    seen = set()
    result = []
    for url in urls:
        if not url or url in seen:
            continue
        seen.add(url)
        result.append(url)
    return result


class PurgeUrlBuilder:
    """
    Builds the URL lists handed to the purge client.

    Optional transforms run after the default set is assembled and may add or
    drop URLs; empties and duplicates are removed after they run.
    """

    def __init__(
        self,
        store: ContentStore,
        url_transform: Optional[UrlTransform] = None,
        delayed_url_transform: Optional[UrlTransform] = None,
    ):
        self._store = store
        self._url_transform = url_transform
        self._delayed_url_transform = delayed_url_transform

    def build_purge_urls(self, item: ContentItem) -> List[str]:
        """Permalink (both slash forms), home and feed."""
        urls: List[str] = []
        if item.permalink:
            urls.append(item.permalink)
            urls.append(toggle_trailing_slash(item.permalink))
        urls.append(self._store.home_url())
        urls.append(self._store.feed_url())

        urls = unique_urls(urls)
        if self._url_transform is not None:
            urls = unique_urls(self._url_transform(urls, item))
        return urls

    def build_delayed_purge_urls(self, item: ContentItem) -> List[str]:
        """Home and feed only; the delayed pass never touches the post page."""
        urls = unique_urls([self._store.home_url(), self._store.feed_url()])
        if self._delayed_url_transform is not None:
            urls = unique_urls(self._delayed_url_transform(urls, item))
        return urls
