import pytest

from shared.database.models import Review, Tour
from shared.utils.exceptions import NotFoundError, ValidationError
from services.handler_factory import HandlerFactory, SQLAlchemyRepository
from services.reviews.service import review_handlers
from services.tours.service import tour_handlers


def _tour_payload(**overrides):
    payload = {
        "name": "The Park Camper",
        "duration": 10,
        "max_group_size": 15,
        "difficulty": "medium",
        "price": 1497,
        "summary": "Breathing in Nature in America's most spectacular National Parks",
        "image_cover": "tour-5-cover.jpg",
    }
    payload.update(overrides)
    return payload


def test_create_one_persists_and_derives_slug(db_session):
    tour = tour_handlers.create_one(db_session, _tour_payload())

    assert tour.id is not None
    assert tour.slug == "the-park-camper"
    assert tour.version_id == 1


def test_create_one_duplicate_is_validation_error(db_session):
    tour_handlers.create_one(db_session, _tour_payload())

    with pytest.raises(ValidationError):
        tour_handlers.create_one(db_session, _tour_payload())


def test_create_one_rejects_discount_not_below_price(db_session):
    with pytest.raises(ValidationError):
        tour_handlers.create_one(db_session, _tour_payload(price=100, price_discount=150))


def test_create_one_resolves_guides(db_session, guide):
    tour = tour_handlers.create_one(db_session, _tour_payload(guides=[guide.id]))

    assert [g.id for g in tour.guides] == [guide.id]


def test_create_one_unknown_guide(db_session):
    with pytest.raises(ValidationError):
        tour_handlers.create_one(db_session, _tour_payload(guides=[999]))


def test_update_one_changes_fields_and_bumps_version(db_session, tour_factory):
    tour = tour_factory(price=300)

    updated = tour_handlers.update_one(db_session, tour.id, {"price": 350, "name": "The Renamed Tour"})

    assert updated.price == 350
    assert updated.slug == "the-renamed-tour"
    assert updated.version_id == 2


def test_update_one_rejects_missing_name(db_session, tour_factory):
    tour = tour_factory()

    with pytest.raises(ValidationError):
        tour_handlers.update_one(db_session, tour.id, {"name": None})


def test_update_one_missing(db_session):
    with pytest.raises(NotFoundError):
        tour_handlers.update_one(db_session, 12345, {"price": 10})


def test_update_one_validates_discount_against_stored_price(db_session, tour_factory):
    tour = tour_factory(price=300)

    with pytest.raises(ValidationError):
        tour_handlers.update_one(db_session, tour.id, {"price_discount": 300})


def test_delete_one_missing(db_session):
    with pytest.raises(NotFoundError):
        tour_handlers.delete_one(db_session, 12345)


def test_delete_one_keeps_dependent_reviews(db_session, tour_factory, regular_user, review_factory):
    tour = tour_factory()
    review_factory(tour, regular_user)

    tour_handlers.delete_one(db_session, tour.id)

    db_session.expire_all()
    assert db_session.get(Tour, tour.id) is None
    assert db_session.query(Review).filter_by(tour_id=tour.id).count() == 1


def test_after_change_hook_runs_on_every_operation(db_session):
    calls = []

    class RecordingRepository(SQLAlchemyRepository[Tour]):
        def after_change(self, db, obj):
            calls.append(obj.name)

    handlers = HandlerFactory(RecordingRepository(Tour), "Tour")
    tour = handlers.create_one(db_session, _tour_payload())
    handlers.update_one(db_session, tour.id, {"price": 1000})
    handlers.delete_one(db_session, tour.id)

    assert calls == ["The Park Camper"] * 3


def test_review_changes_recalculate_tour_ratings(db_session, tour_factory, user_factory):
    tour = tour_factory()
    first, second = user_factory(), user_factory()

    review = review_handlers.create_one(
        db_session, {"review": "Good", "rating": 4, "tour_id": tour.id, "user_id": first.id}
    )
    other = review_handlers.create_one(
        db_session, {"review": "Great", "rating": 5, "tour_id": tour.id, "user_id": second.id}
    )
    db_session.refresh(tour)
    assert tour.ratings_quantity == 2
    assert tour.ratings_average == 4.5

    review_handlers.update_one(db_session, review.id, {"rating": 2})
    db_session.refresh(tour)
    assert tour.ratings_average == 3.5

    review_handlers.delete_one(db_session, review.id)
    review_handlers.delete_one(db_session, other.id)
    db_session.refresh(tour)
    assert tour.ratings_quantity == 0
    assert tour.ratings_average == 4.5


def test_review_for_unknown_tour(db_session, regular_user):
    with pytest.raises(ValidationError):
        review_handlers.create_one(
            db_session, {"review": "Nope", "rating": 3, "tour_id": 999, "user_id": regular_user.id}
        )
