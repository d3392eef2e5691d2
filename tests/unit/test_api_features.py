import pytest
from sqlalchemy import select

from shared.database.models import Tour, User
from shared.utils.api_features import APIFeatures, parse_query_params
from shared.utils.exceptions import ValidationError


def _run(db, params, model=Tour, max_limit=None):
    features = (
        APIFeatures(model, select(model), params, max_limit=max_limit)
        .filter()
        .sort()
        .limit_fields()
        .paginate()
    )
    return features.execute(db), features


@pytest.fixture
def tours(tour_factory):
    return [
        tour_factory(name="The Forest Hiker", difficulty="easy", price=397, duration=5),
        tour_factory(name="The Sea Explorer", difficulty="medium", price=497, duration=7),
        tour_factory(name="The Snow Adventurer", difficulty="difficult", price=997, duration=4),
        tour_factory(name="The City Wanderer", difficulty="easy", price=1197, duration=9),
    ]


def test_parse_query_params_keeps_whitelisted_duplicates():
    params = parse_query_params([
        ("difficulty", "easy"),
        ("difficulty", "medium"),
        ("sort", "price"),
        ("sort", "-price"),
    ])

    assert params["difficulty"] == ["easy", "medium"]
    assert params["sort"] == "-price"


def test_filter_by_equality(db_session, tours):
    items, _ = _run(db_session, {"difficulty": "easy"})

    assert [t.name for t in items] == ["The Forest Hiker", "The City Wanderer"]


def test_filter_with_comparison_operators(db_session, tours):
    items, _ = _run(db_session, {"price[gte]": "497", "duration[lt]": "9"})

    assert [t.name for t in items] == ["The Sea Explorer", "The Snow Adventurer"]


def test_repeated_whitelisted_field_matches_any_value(db_session, tours):
    params = parse_query_params([("difficulty", "easy"), ("difficulty", "difficult")])
    items, _ = _run(db_session, params)

    assert {t.difficulty for t in items} == {"easy", "difficult"}
    assert len(items) == 3


def test_control_keys_are_not_filters(db_session, tours):
    items, _ = _run(db_session, {"page": "1", "limit": "10", "fields": "name", "sort": "price"})

    assert len(items) == 4


def test_sort_descending_and_multiple_keys(db_session, tours):
    items, _ = _run(db_session, {"sort": "difficulty,-price"})

    assert [t.name for t in items] == [
        "The Snow Adventurer",
        "The City Wanderer",
        "The Forest Hiker",
        "The Sea Explorer",
    ]


def test_default_order_is_insertion_order(db_session, tours):
    items, _ = _run(db_session, {})

    assert [t.id for t in items] == sorted(t.id for t in tours)


def test_limit_fields_includes_only_requested_fields(db_session, tours):
    items, features = _run(db_session, {"fields": "name,price"})

    doc = features.serialize(items)[0]
    assert set(doc) == {"id", "name", "price"}


def test_limit_fields_excludes_fields(db_session, tours):
    items, features = _run(db_session, {"fields": "-summary,-images"})

    doc = features.serialize(items)[0]
    assert "summary" not in doc
    assert "images" not in doc
    assert "version_id" not in doc
    assert "name" in doc


def test_internal_version_is_hidden_by_default(db_session, tours):
    items, features = _run(db_session, {})

    assert "version_id" not in features.serialize(items)[0]


def test_paginate(db_session, tours):
    items, features = _run(db_session, {"page": "2", "limit": "3"})

    assert features.skip == 3
    assert [t.name for t in items] == ["The City Wanderer"]


def test_paginate_falls_back_to_defaults_on_invalid_values(db_session, tours):
    _, features = _run(db_session, {"page": "abc", "limit": "-5"})

    assert features.page == 1
    assert features.limit == 100
    assert features.skip == 0


def test_limit_is_capped(db_session, tours):
    items, features = _run(db_session, {"limit": "5000"}, max_limit=2)

    assert features.limit == 2
    assert len(items) == 2


def test_unknown_field_is_rejected(db_session, tours):
    with pytest.raises(ValidationError):
        _run(db_session, {"colour": "red"})


def test_unknown_operator_is_rejected(db_session, tours):
    with pytest.raises(ValidationError):
        _run(db_session, {"price[ne]": "10"})


def test_invalid_value_is_rejected(db_session, tours):
    with pytest.raises(ValidationError):
        _run(db_session, {"price[gte]": "cheap"})


def test_sensitive_fields_cannot_be_queried(db_session, user_factory):
    user_factory()

    with pytest.raises(ValidationError):
        _run(db_session, {"sort": "password"}, model=User)
    with pytest.raises(ValidationError):
        _run(db_session, {"password_reset_token": "x"}, model=User)


def test_spatial_column_cannot_be_queried(db_session, tours):
    with pytest.raises(ValidationError):
        _run(db_session, {"sort": "start_point"})
    with pytest.raises(ValidationError):
        _run(db_session, {"start_point": "POINT(0 0)"})


def test_boolean_filter(db_session, user_factory):
    user_factory(email="on@natours.io")
    user_factory(email="off@natours.io", active=False)

    items, _ = _run(db_session, {"active": "false"}, model=User)

    assert [u.email for u in items] == ["off@natours.io"]


def test_paginate_skip_and_take(db_session):
    features = APIFeatures(Tour, select(Tour), {"page": "2", "limit": "10"}).paginate()
    assert (features.skip, features.limit) == (10, 10)

    features = APIFeatures(Tour, select(Tour), {}).paginate()
    assert (features.skip, features.limit) == (0, 100)
