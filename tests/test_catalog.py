import json

import pytest

from vibesphere_recs.catalog import (
    SAMPLE_BOOKS,
    SAMPLE_RATINGS,
    load_catalog,
    load_profile,
    load_ratings,
    sample_ratings,
)
from vibesphere_recs.models import ValidationError


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_sample_catalog_ids_are_unique():
    ids = [b.book_id for b in SAMPLE_BOOKS]
    assert len(ids) == len(set(ids))


def test_sample_ratings_are_fresh_copies():
    ratings = sample_ratings()
    ratings.set_rating("u1", "b1", 1)

    assert SAMPLE_RATINGS["u1"]["b1"] == 5
    assert sample_ratings().get_rating("u1", "b1") == 5


def test_load_catalog_list_and_wrapped(tmp_path):
    records = [{"id": "b1", "title": "One", "genres": ["Mystery"], "lengthHours": 4}]
    plain = load_catalog(_write(tmp_path / "plain.json", records))
    wrapped = load_catalog(_write(tmp_path / "wrapped.json", {"books": records}))

    assert plain == wrapped
    assert plain[0].genres == ("Mystery",)


def test_load_catalog_rejects_bad_files(tmp_path):
    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_catalog(bad_json)
    with pytest.raises(ValidationError):
        load_catalog(_write(tmp_path / "scalar.json", 42))


def test_load_ratings_validates(tmp_path):
    ratings = load_ratings(_write(tmp_path / "r.json", {"u1": {"b1": 3}}))
    assert ratings.get_rating("u1", "b1") == 3

    with pytest.raises(ValidationError):
        load_ratings(_write(tmp_path / "bad.json", {"u1": {"b1": 0}}))


def test_load_profile(tmp_path):
    profile = load_profile(_write(tmp_path / "p.json", {"id": "u1", "favoriteGenres": ["Mystery"]}))
    assert profile.favorite_genres == {"Mystery"}
