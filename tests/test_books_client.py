from unittest.mock import MagicMock

import pytest
import requests

from vibesphere_recs.books_client import BooksAPIError, GoogleBooksClient, volume_to_book
from vibesphere_recs.config import DEFAULT_LENGTH_HOURS
from vibesphere_recs.utils import Cache


def _volume(volume_id, **info):
    base = {"title": f"Title {volume_id}", "authors": ["Someone"]}
    base.update(info)
    return {"id": volume_id, "volumeInfo": base}


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    c = GoogleBooksClient(api_key="", use_cache=False, session=session)
    c._min_request_interval = 0
    return c


def test_volume_to_book_normalizes_fields():
    book = volume_to_book(_volume(
        "vol1",
        title="The Hound",
        authors=["A. Conan Doyle", "Editor"],
        categories=["Fiction / Mystery & Detective / General", "Fiction / Classics"],
        pageCount=240,
        imageLinks={"thumbnail": "http://books.example/cover.jpg"},
        averageRating=4.5,
        description="A spectral hound.",
    ))

    assert book.book_id == "vol1"
    assert book.author == "A. Conan Doyle, Editor"
    assert book.genres == ("Fiction",)
    assert book.tags == ("mystery & detective", "general", "classics")
    assert book.length_hours == 6.0
    assert book.cover == "https://books.example/cover.jpg"
    assert book.rating == 4.5
    assert book.summary == "A spectral hound."


def test_volume_to_book_defaults():
    book = volume_to_book({"id": "v", "volumeInfo": {}})

    assert book.title == "Untitled"
    assert book.author == "Unknown Author"
    assert book.length_hours == DEFAULT_LENGTH_HOURS
    assert book.genres == ()
    assert book.rating == 0.0


def test_search_sends_query_params(client, session):
    session.get.return_value = _response(payload={"items": [_volume("v1")]})

    items = client.search("  subject:mystery ", max_results=100)

    assert [i["id"] for i in items] == ["v1"]
    _, kwargs = session.get.call_args
    assert kwargs["params"]["q"] == "subject:mystery"
    assert kwargs["params"]["maxResults"] == 40
    assert kwargs["params"]["printType"] == "books"
    assert "key" not in kwargs["params"]


def test_blank_query_falls_back_to_bestsellers(client, session):
    session.get.return_value = _response(payload={})

    assert client.search("") == []
    _, kwargs = session.get.call_args
    assert kwargs["params"]["q"] == "bestsellers"


def test_api_key_is_sent(session):
    session.get.return_value = _response(payload={})
    client = GoogleBooksClient(api_key="secret", use_cache=False, session=session)
    client._min_request_interval = 0

    client.search("x")

    _, kwargs = session.get.call_args
    assert kwargs["params"]["key"] == "secret"


def test_http_error_raises(client, session):
    session.get.return_value = _response(status_code=503)
    with pytest.raises(BooksAPIError):
        client.search("x")


def test_network_error_raises(client, session):
    session.get.side_effect = requests.ConnectionError("down")
    with pytest.raises(BooksAPIError):
        client.search("x")


def test_search_many_pages_until_short_page(client, session):
    full_page = {"items": [_volume(f"p1-{i}") for i in range(40)]}
    short_page = {"items": [_volume("p2-0")]}
    session.get.side_effect = [_response(payload=full_page), _response(payload=short_page)]

    items = client.search_many("x", total=120)

    assert len(items) == 41
    assert session.get.call_count == 2
    starts = [call.kwargs["params"]["startIndex"] for call in session.get.call_args_list]
    assert starts == [0, 40]


def test_fetch_books_dedupes(client, session):
    session.get.return_value = _response(payload={"items": [_volume("v1"), _volume("v1"), {"volumeInfo": {}}]})

    books = client.fetch_books("x", total=3)

    assert [b.book_id for b in books] == ["v1"]


def test_discover_skips_failing_queries(client, session):
    session.get.side_effect = [
        _response(payload={"items": [_volume("a")]}),
        _response(status_code=500),
        _response(payload={"items": [_volume("b"), _volume("a")]}),
        _response(payload={"items": [_volume("c")]}),
    ]

    books = client.discover(mood="mysterious", genre="Fiction", limit=40)

    assert [b.book_id for b in books] == ["a", "b", "c"]
    queries = [call.kwargs["params"]["q"] for call in session.get.call_args_list]
    assert queries[0] == "subject:mystery subject:fiction"


def test_discover_genre_only(client, session):
    session.get.return_value = _response(payload={"items": [_volume("g")]})

    books = client.discover(genre="romance", limit=5)

    assert [b.book_id for b in books] == ["g"]
    assert session.get.call_args.kwargs["params"]["q"] == "subject:romance"


def test_get_book_not_found(client, session):
    session.get.return_value = _response(status_code=404)
    assert client.get_book("missing") is None


def test_get_book(client, session):
    session.get.return_value = _response(payload=_volume("v9", pageCount=80))

    book = client.get_book("v9")

    assert book.book_id == "v9"
    assert book.length_hours == 2.0
    assert session.get.call_args.args[0].endswith("/v9")


def test_responses_are_cached(session, tmp_path):
    session.get.return_value = _response(payload={"items": [_volume("v1")]})
    client = GoogleBooksClient(api_key="", cache=Cache(tmp_path, ttl_hours=1), session=session)
    client._min_request_interval = 0

    first = client.search("cached query")
    second = client.search("cached query")

    assert first == second
    assert session.get.call_count == 1
