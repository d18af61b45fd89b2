"""Request categorization by URL and content type.

Rules are evaluated in ``Category`` declaration order and the first match
wins, so a ``.css`` file served under ``/api/`` is an API call.
"""

from __future__ import annotations

import posixpath
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from harperf.metrics.models import Category, CategoryMetrics

if TYPE_CHECKING:
    from collections.abc import Iterable

    from harperf.metrics.models import RequestRecord

API_URL_MARKERS = ("/api/", "graphql", "/rest/")

# (category, path extensions, content-type substring), in precedence order
_FILE_RULES: tuple[tuple[Category, frozenset[str], str], ...] = (
    (Category.JAVASCRIPT, frozenset({"js", "mjs", "jsx", "ts", "tsx"}), "javascript"),
    (Category.CSS, frozenset({"css", "scss", "sass", "less"}), "css"),
    (
        Category.IMAGES,
        frozenset({"png", "jpg", "jpeg", "gif", "svg", "webp", "ico", "bmp"}),
        "image",
    ),
    (Category.FONTS, frozenset({"woff", "woff2", "ttf", "eot", "otf"}), "font"),
    (Category.HTML, frozenset({"html", "htm"}), "html"),
)


def url_extension(url: str) -> str:
    """Return the lower-cased file extension of the URL path, without the dot.

    Query string and fragment are ignored. Returns an empty string when the
    path has no extension or the URL cannot be split.
    """
    try:
        path = urlsplit(url).path
    except ValueError:
        path = url.split("?", 1)[0].split("#", 1)[0]
    return posixpath.splitext(path)[1][1:].lower()


def looks_like_api(record: RequestRecord, extra_markers: Iterable[str] = ()) -> bool:
    """Return True when the URL or content type marks *record* as an API call.

    Args:
        record: The record to test.
        extra_markers: Additional URL substrings that mark an API call.
    """
    if "json" in record.content_type.lower():
        return True
    url = record.url
    return any(marker in url for marker in API_URL_MARKERS) or any(
        marker in url for marker in extra_markers
    )


def categorize(record: RequestRecord) -> Category:
    """Classify a record into exactly one category."""
    if looks_like_api(record):
        return Category.API

    extension = url_extension(record.url)
    content_type = record.content_type.lower()
    for category, extensions, type_marker in _FILE_RULES:
        if extension in extensions or type_marker in content_type:
            return category
    return Category.OTHER


def categorize_records(records: Iterable[RequestRecord]) -> dict[Category, CategoryMetrics]:
    """Classify every record and total each category.

    Every category is present in the result, zeroed when unused. Averages
    are computed once after all records are counted.

    Args:
        records: Normalized request records.

    Returns:
        Metrics keyed by category, in category declaration order.
    """
    metrics = {category: CategoryMetrics() for category in Category}
    for record in records:
        metrics[categorize(record)].add(record)

    for category_metrics in metrics.values():
        category_metrics.finalize()
    return metrics
