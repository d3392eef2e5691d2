# backend/scripts/seed_data.py
"""
Script para cargar (o borrar) datos de prueba en la base de datos

Uso:
    python scripts/seed_data.py --import
    python scripts/seed_data.py --delete
"""
import argparse
import sys
from pathlib import Path

# Agregar el directorio raíz al path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session
from shared.database.base import SessionLocal, init_db
from shared.database.models import Review, Tour, TourStartDate, User, UserRole, tour_guides
from services.reviews.service import calc_average_ratings

SEED_PASSWORD = "test1234"

USERS = [
    {"name": "Jonas Schmedtmann", "email": "admin@natours.io", "role": UserRole.ADMIN.value},
    {"name": "Lourdes Browning", "email": "loulou@natours.io", "role": UserRole.LEAD_GUIDE.value},
    {"name": "Leo Gillespie", "email": "leo@natours.io", "role": UserRole.GUIDE.value},
    {"name": "Kate Morrison", "email": "kate@natours.io", "role": UserRole.GUIDE.value},
    {"name": "Sophie Louise Hart", "email": "sophie@natours.io", "role": UserRole.USER.value},
    {"name": "Ayla Cornell", "email": "ayls@natours.io", "role": UserRole.USER.value},
    {"name": "Miyah Myles", "email": "miyah@natours.io", "role": UserRole.USER.value},
]

TOURS = [
    {
        "name": "The Forest Hiker",
        "duration": 5,
        "max_group_size": 25,
        "difficulty": "easy",
        "price": 397,
        "summary": "Breathtaking hike through the Canadian Banff National Park",
        "description": "Ut enim ad minim veniam, quis nostrud exercitation ullamco laboris.",
        "image_cover": "tour-1-cover.jpg",
        "images": ["tour-1-1.jpg", "tour-1-2.jpg", "tour-1-3.jpg"],
        "start_dates": ["2021-04-25T09:00:00Z", "2021-07-20T09:00:00Z", "2021-10-05T09:00:00Z"],
        "start_location": {
            "type": "Point",
            "coordinates": [-116.214531, 51.417611],
            "address": "224 Banff Ave, Banff, AB, Canada",
            "description": "Banff, CAN",
        },
        "locations": [
            {"type": "Point", "coordinates": [-116.214531, 51.417611], "description": "Banff National Park", "day": 1},
            {"type": "Point", "coordinates": [-118.076152, 52.875223], "description": "Jasper National Park", "day": 3},
        ],
        "guides": ["loulou@natours.io", "leo@natours.io"],
    },
    {
        "name": "The Sea Explorer",
        "duration": 7,
        "max_group_size": 15,
        "difficulty": "medium",
        "price": 497,
        "price_discount": 100,
        "summary": "Exploring the jaw-dropping US east coast by foot and by boat",
        "description": "Consectetur adipisicing elit, sed do eiusmod tempor incididunt.",
        "image_cover": "tour-2-cover.jpg",
        "images": ["tour-2-1.jpg", "tour-2-2.jpg", "tour-2-3.jpg"],
        "start_dates": ["2021-06-19T09:00:00Z", "2021-07-20T09:00:00Z", "2021-08-18T09:00:00Z"],
        "start_location": {
            "type": "Point",
            "coordinates": [-80.185942, 25.774772],
            "address": "301 Biscayne Blvd, Miami, FL 33132, USA",
            "description": "Miami, USA",
        },
        "locations": [
            {"type": "Point", "coordinates": [-80.128473, 25.781842], "description": "Lummus Park Beach", "day": 1},
            {"type": "Point", "coordinates": [-80.647885, 24.909047], "description": "Islamorada", "day": 2},
        ],
        "guides": ["loulou@natours.io", "kate@natours.io"],
    },
    {
        "name": "The Snow Adventurer",
        "duration": 4,
        "max_group_size": 10,
        "difficulty": "difficult",
        "price": 997,
        "summary": "Exciting adventure in the snow with snowboarding and skiing",
        "description": "Sed do eiusmod tempor incididunt ut labore et dolore magna aliqua.",
        "image_cover": "tour-3-cover.jpg",
        "images": ["tour-3-1.jpg", "tour-3-2.jpg", "tour-3-3.jpg"],
        "start_dates": ["2022-01-05T10:00:00Z", "2022-02-12T10:00:00Z", "2023-01-06T10:00:00Z"],
        "start_location": {
            "type": "Point",
            "coordinates": [-106.822318, 39.190872],
            "address": "419 S Mill St, Aspen, CO 81611, USA",
            "description": "Aspen, USA",
        },
        "locations": [
            {"type": "Point", "coordinates": [-106.855385, 39.182677], "description": "Aspen Highlands", "day": 1},
        ],
        "guides": ["kate@natours.io"],
    },
    {
        "name": "The City Wanderer",
        "duration": 9,
        "max_group_size": 20,
        "difficulty": "easy",
        "price": 1197,
        "summary": "Living the life of Wanderlust in the US' most beatiful cities",
        "description": "Excepteur sint occaecat cupidatat non proident, sunt in culpa.",
        "image_cover": "tour-4-cover.jpg",
        "images": ["tour-4-1.jpg", "tour-4-2.jpg", "tour-4-3.jpg"],
        "start_dates": ["2021-03-11T10:00:00Z", "2021-05-02T10:00:00Z", "2021-06-09T10:00:00Z"],
        "start_location": {
            "type": "Point",
            "coordinates": [-73.985141, 40.75894],
            "address": "Manhattan, New York, NY 10036, USA",
            "description": "NYC, USA",
        },
        "locations": [
            {"type": "Point", "coordinates": [-73.967696, 40.781821], "description": "New York", "day": 1},
            {"type": "Point", "coordinates": [-118.324396, 34.097984], "description": "Los Angeles", "day": 3},
        ],
        "guides": ["loulou@natours.io"],
    },
]

REVIEWS = [
    {"tour": "The Forest Hiker", "user": "sophie@natours.io", "rating": 5,
     "review": "Cras mollis nisi parturient mi nec aliquet suspendisse sagittis eros."},
    {"tour": "The Forest Hiker", "user": "ayls@natours.io", "rating": 4,
     "review": "Tempus curabitur faucibus auctor bibendum duis gravida tincidunt."},
    {"tour": "The Sea Explorer", "user": "sophie@natours.io", "rating": 5,
     "review": "Quisque egestas faucibus primis ridiculus mi felis tristique."},
    {"tour": "The Sea Explorer", "user": "miyah@natours.io", "rating": 4,
     "review": "Convallis turpis porttitor sapien ad urna efficitur dui vivamus."},
    {"tour": "The Snow Adventurer", "user": "ayls@natours.io", "rating": 3,
     "review": "Porttitor ullamcorper rutrum semper proin mus felis varius."},
    {"tour": "The City Wanderer", "user": "miyah@natours.io", "rating": 5,
     "review": "Varius potenti proin hendrerit felis sit convallis nunc non."},
]


def create_users(db: Session) -> dict:
    """Crear usuarios de ejemplo (contraseña común SEED_PASSWORD)"""
    users = {}
    for user_data in USERS:
        user = User(**user_data)
        user.set_password(SEED_PASSWORD, stamp_change=False)
        db.add(user)
        users[user.email] = user

    db.flush()
    print("✅ Usuarios creados")
    return users


def create_tours(db: Session, users: dict) -> dict:
    """Crear tours de ejemplo con sus guías"""
    tours = {}
    for tour_data in TOURS:
        tour_data = dict(tour_data)
        guide_emails = tour_data.pop("guides")
        tour = Tour(**tour_data)
        tour.guides = [users[email] for email in guide_emails]
        db.add(tour)
        tours[tour.name] = tour

    db.flush()
    print("✅ Tours creados")
    return tours


def create_reviews(db: Session, tours: dict, users: dict) -> None:
    """Crear reviews de ejemplo y recalcular los ratings de cada tour"""
    for review_data in REVIEWS:
        db.add(Review(
            tour_id=tours[review_data["tour"]].id,
            user_id=users[review_data["user"]].id,
            rating=review_data["rating"],
            review=review_data["review"],
        ))
    db.flush()

    for tour in tours.values():
        calc_average_ratings(db, tour.id)
    print("✅ Reviews creadas")


def seed(db: Session) -> None:
    """Cargar todos los datos de ejemplo en una sola transacción"""
    try:
        users = create_users(db)
        tours = create_tours(db, users)
        create_reviews(db, tours, users)
        db.commit()
    except Exception:
        db.rollback()
        raise


def clear(db: Session) -> None:
    """Borrar reviews, tours (con sus fechas de salida) y usuarios"""
    try:
        db.execute(delete(Review))
        db.execute(delete(tour_guides))
        db.execute(delete(TourStartDate))
        db.execute(delete(Tour))
        db.execute(delete(User))
        db.commit()
    except Exception:
        db.rollback()
        raise
    print("🗑️  Datos eliminados")


def summary(db: Session) -> dict:
    return {
        "users": db.scalar(select(func.count(User.id))),
        "tours": db.scalar(select(func.count(Tour.id))),
        "reviews": db.scalar(select(func.count(Review.id))),
    }


def main(argv=None):
    """Función principal"""
    parser = argparse.ArgumentParser(description="Datos de prueba de Natours")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--import", dest="import_data", action="store_true", help="Cargar los datos")
    group.add_argument("--delete", dest="delete_data", action="store_true", help="Borrar los datos")
    args = parser.parse_args(argv)

    init_db()
    db = SessionLocal()

    try:
        if args.import_data:
            print("🚀 Iniciando carga de datos de prueba...")
            seed(db)
            print("\n✅ ¡Datos de prueba cargados exitosamente!")
        else:
            clear(db)

        print("\n📊 Resumen:")
        for name, count in summary(db).items():
            print(f"   - {name}: {count}")
    except Exception as e:
        print(f"❌ Error: {e}")
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
