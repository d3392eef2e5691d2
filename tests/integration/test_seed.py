from sqlalchemy import select

from scripts.seed_data import SEED_PASSWORD, clear, seed, summary
from shared.database.models import Tour


def test_seed_loads_sample_data(db_session):
    seed(db_session)

    counts = summary(db_session)
    assert counts == {"users": 7, "tours": 4, "reviews": 6}

    forest = db_session.execute(select(Tour).where(Tour.slug == "the-forest-hiker")).scalar_one()
    assert forest.ratings_quantity == 2
    assert forest.ratings_average == 4.5
    assert {g.role for g in forest.guides} == {"lead-guide", "guide"}


def test_seeded_users_can_log_in(db_session, client):
    seed(db_session)

    resp = client.post("/api/v1/users/login", json={"email": "admin@natours.io", "password": SEED_PASSWORD})

    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["user"]["role"] == "admin"


def test_clear_removes_everything(db_session):
    seed(db_session)

    clear(db_session)

    assert summary(db_session) == {"users": 0, "tours": 0, "reviews": 0}
