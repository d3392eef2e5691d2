# backend/services/tours/service.py
"""
Servicio para tours: listados, estadísticas, plan mensual y búsquedas geoespaciales
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Tuple

from fastapi import status
from geoalchemy2 import Geography  # type: ignore
from sqlalchemy import JSON, cast, extract, func, select
from sqlalchemy.dialects.postgresql import aggregate_order_by
from sqlalchemy.orm import Session, selectinload

from shared.config.settings import get_settings
from shared.database.models import Tour, TourStartDate, User
from shared.schemas.tour import TourCreate, TourUpdate
from shared.utils.api_features import APIFeatures
from shared.utils.exceptions import AppError, NotFoundError, ValidationError
from shared.utils.logger import setup_logger
from services.handler_factory import HandlerFactory, SQLAlchemyRepository

logger = setup_logger(__name__)
settings = get_settings()

# Radio de la Tierra por unidad (para radios en radianes)
EARTH_RADIUS = {"mi": 3963.2, "km": 6378.1}
EARTH_RADIUS_METERS = 6378100.0

# Metros -> unidad pedida
DISTANCE_MULTIPLIER = {"mi": 0.000621371, "km": 0.001}

# Vista fija de /top-5-cheap
TOP_TOURS_ALIAS = {
    "limit": "5",
    "sort": "-ratings_average,price",
    "fields": "name,price,ratings_average,summary,difficulty",
}

MIN_STATS_RATING = 4.5


def parse_latlng(latlng: str) -> Tuple[float, float]:
    """'34.11,-118.11' -> (lat, lng)"""
    parts = [part.strip() for part in latlng.split(",")]
    try:
        if len(parts) != 2 or not all(parts):
            raise ValueError(latlng)
        lat, lng = float(parts[0]), float(parts[1])
    except ValueError:
        raise ValidationError("Indica coordenadas válidas con el formato lat,lng")

    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationError("Indica coordenadas válidas con el formato lat,lng")
    return lat, lng


def validate_unit(unit: str) -> str:
    if unit not in EARTH_RADIUS:
        raise ValidationError("Indica una unidad válida (mi, km)")
    return unit


def radius_in_radians(distance: float, unit: str) -> float:
    return distance / EARTH_RADIUS[validate_unit(unit)]


def radius_in_meters(distance: float, unit: str) -> float:
    """Radio en radianes llevado a metros sobre la esfera de 6378.1 km"""
    return radius_in_radians(distance, unit) * EARTH_RADIUS_METERS


def geography_point(lat: float, lng: float):
    """Punto (lng, lat) en SRID 4326 como geografía PostGIS"""
    return cast(func.ST_SetSRID(func.ST_MakePoint(lng, lat), 4326), Geography)


def _is_postgresql(db: Session) -> bool:
    return db.get_bind().dialect.name == "postgresql"


def _require_postgis(db: Session) -> None:
    if not _is_postgresql(db):
        raise AppError(
            "Las búsquedas geográficas requieren PostgreSQL con PostGIS",
            status_code=status.HTTP_501_NOT_IMPLEMENTED
        )


def alias_top_tours(query_params: Mapping) -> Dict[str, Any]:
    """Sobrescribe limit/sort/fields con la vista fija de los 5 mejores y más baratos"""
    return {**dict(query_params), **TOP_TOURS_ALIAS}


class TourRepository(SQLAlchemyRepository[Tour]):
    """Los guías llegan como IDs y se resuelven a usuarios existentes"""

    def assign(self, db: Session, obj: Tour, payload: Dict[str, Any]) -> None:
        payload = dict(payload)
        guide_ids = payload.pop("guides", None)
        super().assign(db, obj, payload)

        if guide_ids is not None:
            guides = db.execute(select(User).where(User.id.in_(guide_ids))).scalars().all()
            missing = set(guide_ids) - {guide.id for guide in guides}
            if missing:
                raise ValidationError(f"No existen los guías con ID {sorted(missing)}")
            obj.guides = list(guides)


tour_repository = TourRepository(Tour)
tour_handlers = HandlerFactory(tour_repository, "Tour")


class TourService:
    """Servicio para operaciones de tours"""

    @staticmethod
    def public_query():
        """Los tours secretos no aparecen en ninguna lectura pública"""
        return select(Tour).where(Tour.secret_tour.is_(False))

    @staticmethod
    def get_all(db: Session, query_params: Mapping) -> Tuple[List[Tour], APIFeatures]:
        features = (
            APIFeatures(Tour, TourService.public_query(), query_params, max_limit=settings.QUERY_MAX_LIMIT)
            .filter()
            .sort()
            .limit_fields()
            .paginate()
        )
        return features.execute(db), features

    @staticmethod
    def get_tour(db: Session, identifier: str) -> Tour:
        """
        Obtener un tour por slug o por ID, con guías y reviews

        Args:
            db: Sesión de base de datos
            identifier: Slug (contiene '-') o ID numérico

        Returns:
            Tour: Tour con relaciones cargadas
        """
        query = TourService.public_query().options(selectinload(Tour.reviews))

        if "-" in identifier:
            query = query.where(Tour.slug == identifier)
        elif identifier.isdigit():
            query = query.where(Tour.id == int(identifier))
        else:
            raise ValidationError(f"ID inválido: {identifier}")

        tour = db.execute(query).scalar_one_or_none()
        if not tour:
            raise NotFoundError(f"Tour '{identifier}' no encontrado")
        return tour

    @staticmethod
    def create(db: Session, data: TourCreate) -> Tour:
        return tour_handlers.create_one(db, data.model_dump(mode="json"))

    @staticmethod
    def update(db: Session, tour_id: int, data: TourUpdate) -> Tour:
        return tour_handlers.update_one(db, tour_id, data.model_dump(mode="json", exclude_unset=True))

    @staticmethod
    def delete(db: Session, tour_id: int) -> None:
        """Las reviews del tour se conservan (sin borrado en cascada)"""
        tour_handlers.delete_one(db, tour_id)

    @staticmethod
    def get_tour_stats(db: Session) -> List[Dict[str, Any]]:
        """Estadísticas por dificultad de los tours con rating >= 4.5"""
        avg_price = func.avg(Tour.price)
        rows = db.execute(
            select(
                Tour.difficulty,
                func.count(Tour.id),
                func.sum(Tour.ratings_quantity),
                func.avg(Tour.ratings_average),
                avg_price,
                func.min(Tour.price),
                func.max(Tour.price),
            )
            .where(Tour.secret_tour.is_(False), Tour.ratings_average >= MIN_STATS_RATING)
            .group_by(Tour.difficulty)
            .order_by(avg_price)
        ).all()

        return [
            {
                "difficulty": difficulty,
                "num_tours": num_tours,
                "num_ratings": int(num_ratings or 0),
                "avg_rating": round(float(avg_rating), 2),
                "avg_price": round(float(avg_price_value), 2),
                "min_price": float(min_price),
                "max_price": float(max_price),
            }
            for difficulty, num_tours, num_ratings, avg_rating, avg_price_value, min_price, max_price in rows
        ]

    @staticmethod
    def get_monthly_plan(db: Session, year: int) -> List[Dict[str, Any]]:
        """
        Salidas de tours por mes del año indicado

        Cada fila de tour_start_dates cuenta como una salida; la agrupación
        por mes se hace en la base de datos y el resultado se ordena por
        número de mes ascendente.
        """
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)

        if _is_postgresql(db):
            month = extract("month", func.timezone("UTC", TourStartDate.start_date))
            names = func.json_agg(aggregate_order_by(Tour.name, TourStartDate.start_date), type_=JSON)
        else:
            month = extract("month", TourStartDate.start_date)
            names = func.json_group_array(Tour.name, type_=JSON)

        rows = db.execute(
            select(month.label("month"), func.count(TourStartDate.id), names)
            .join(Tour, Tour.id == TourStartDate.tour_id)
            .where(
                Tour.secret_tour.is_(False),
                TourStartDate.start_date >= start,
                TourStartDate.start_date <= end,
            )
            .group_by(month)
            .order_by(month)
        ).all()

        return [
            {"month": int(month_number), "num_tour_starts": num_tour_starts, "tours": list(tours)}
            for month_number, num_tour_starts, tours in rows
        ]

    @staticmethod
    def within_query(lat: float, lng: float, radius_meters: float):
        """Tours públicos con start_point a menos de radius_meters del centro"""
        return (
            TourService.public_query()
            .where(func.ST_DWithin(Tour.start_point, geography_point(lat, lng), radius_meters))
            .order_by(Tour.id)
        )

    @staticmethod
    def distances_query(lat: float, lng: float, multiplier: float):
        """(id, name, distancia en la unidad pedida) ordenado por distancia"""
        distance = (
            func.ST_Distance(Tour.start_point, geography_point(lat, lng)) * multiplier
        ).label("distance")
        return (
            select(Tour.id, Tour.name, distance)
            .where(Tour.secret_tour.is_(False), Tour.start_point.isnot(None))
            .order_by(distance, Tour.id)
        )

    @staticmethod
    def get_tours_within(db: Session, distance: float, latlng: str, unit: str) -> List[Tour]:
        """Tours cuya ubicación de inicio está dentro del radio indicado (ST_DWithin)"""
        lat, lng = parse_latlng(latlng)
        radius = radius_in_meters(distance, unit)
        _require_postgis(db)

        tours = db.execute(TourService.within_query(lat, lng, radius)).scalars().all()

        logger.info(f"{len(tours)} tours a menos de {distance}{unit} de ({lat}, {lng})")
        return list(tours)

    @staticmethod
    def get_distances(db: Session, latlng: str, unit: str) -> List[Dict[str, Any]]:
        """Distancia desde el punto a cada tour con ubicación, de menor a mayor"""
        lat, lng = parse_latlng(latlng)
        multiplier = DISTANCE_MULTIPLIER[validate_unit(unit)]
        _require_postgis(db)

        rows = db.execute(TourService.distances_query(lat, lng, multiplier)).all()
        return [
            {"id": tour_id, "name": name, "distance": round(float(value))}
            for tour_id, name, value in rows
        ]
