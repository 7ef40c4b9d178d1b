from __future__ import annotations

import pytest

from clientid.errors import OriginError
from clientid.services.origin import OriginClassifier


@pytest.fixture
def classifier() -> OriginClassifier:
    return OriginClassifier(["https://cdn.ampproject.org"])


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://cdn.ampproject.org/c/s/www.example.com/a.html", True),
        ("https://CDN.ampproject.org/v/s/www.example.com/", True),
        ("http://localhost:8000/c/www.example.com/a.html", True),
        ("http://localhost:8000/v/s/www.example.com/", True),
        ("http://localhost:8000/examples/article.html", False),
        ("https://www.example.com/a.html", False),
        ("https://cdn.ampproject.org.evil.com/c/s/www.example.com/", False),
    ],
)
def test_is_proxy_origin(classifier: OriginClassifier, url: str, expected: bool) -> None:
    assert classifier.is_proxy_origin(url) is expected


@pytest.mark.parametrize(
    "url,origin",
    [
        ("https://cdn.ampproject.org/c/s/www.example.com/news/1.html", "https://www.example.com"),
        ("https://cdn.ampproject.org/c/www.example.com/news/1.html", "http://www.example.com"),
        ("https://cdn.ampproject.org/v/s/news.example.co.uk/", "https://news.example.co.uk"),
        ("http://localhost:8000/c/s/www.example.com/", "https://www.example.com"),
        ("https://cdn.ampproject.org/c/s/www.example.com%3A8080/a.html", "https://www.example.com:8080"),
        ("https://cdn.ampproject.org/c/www.example.com%3A8080/a.html", "http://www.example.com:8080"),
    ],
)
def test_proxy_source_origin(classifier: OriginClassifier, url: str, origin: str) -> None:
    assert classifier.get_proxy_source_origin(url) == origin


def test_source_origin_requires_proxy(classifier: OriginClassifier) -> None:
    with pytest.raises(OriginError):
        classifier.get_proxy_source_origin("https://www.example.com/c/s/other.example.com/")


def test_unknown_prefix_rejected(classifier: OriginClassifier) -> None:
    with pytest.raises(OriginError):
        classifier.get_source_origin("https://cdn.ampproject.org/x/s/www.example.com/")


def test_origin_without_dot_rejected(classifier: OriginClassifier) -> None:
    with pytest.raises(OriginError):
        classifier.get_source_origin("https://cdn.ampproject.org/c/s/intranet/")


def test_proxy_origins_from_settings() -> None:
    from clientid.config import Settings

    cfg = Settings(proxy_origins=["https://proxy.example.net"])
    classifier = OriginClassifier(settings=cfg)
    assert classifier.is_proxy_origin("https://proxy.example.net/c/s/www.example.com/")
    assert not classifier.is_proxy_origin("https://cdn.ampproject.org/c/s/www.example.com/")
