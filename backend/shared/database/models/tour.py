# shared/database/models/tour.py
"""
Modelo para tours
"""
import re
import unicodedata
from datetime import datetime
from typing import Iterable, List, Optional, Union

from geoalchemy2 import Geography  # type: ignore
from sqlalchemy import (
    Column, Integer, String, Text, DateTime,
    Boolean, Float, ForeignKey, Table, JSON, func
)
from sqlalchemy.orm import relationship, validates

from shared.database.base import Base, as_utc
from shared.utils.exceptions import ValidationError


# Tabla de asociación tour <-> guías (referencias, no embebidos)
tour_guides = Table(
    "tour_guides",
    Base.metadata,
    Column("tour_id", Integer, ForeignKey("tours.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


def slugify(value: str) -> str:
    """'The Forest Hiker' -> 'the-forest-hiker'"""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value).strip().lower()
    return re.sub(r"[-_\s]+", "-", value)


def parse_start_date(value: Union[str, datetime]) -> datetime:
    """Convierte una fecha ISO (o datetime) a datetime UTC"""
    if isinstance(value, datetime):
        return as_utc(value)
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(value))


def format_start_date(value: datetime) -> str:
    return as_utc(value).isoformat().replace("+00:00", "Z")


def point_ewkt(location: Optional[dict]) -> Optional[str]:
    """GeoJSON {"coordinates": [lng, lat]} -> 'SRID=4326;POINT(lng lat)'"""
    coordinates = (location or {}).get("coordinates") or []
    if len(coordinates) != 2:
        return None
    lng, lat = coordinates
    return f"SRID=4326;POINT({lng} {lat})"


class TourStartDate(Base):
    """Fecha de salida de un tour (una fila por salida)"""
    __tablename__ = "tour_start_dates"

    id = Column(Integer, primary_key=True)
    tour_id = Column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date = Column(DateTime(timezone=True), nullable=False, index=True)

    def __repr__(self):
        return f"<TourStartDate(tour_id={self.tour_id}, start_date={self.start_date})>"


class Tour(Base):
    """
    Tabla de tours

    start_location / locations usan formato GeoJSON:
    {"type": "Point", "coordinates": [lng, lat], "address": "...", "description": "..."}

    start_point guarda el mismo punto como geografía PostGIS para las
    búsquedas por distancia (en SQLite queda como texto EWKT).
    """
    __tablename__ = "tours"

    id = Column(Integer, primary_key=True, index=True)

    # Información básica
    name = Column(String(40), nullable=False, unique=True, index=True)
    slug = Column(String(80), nullable=False, unique=True, index=True)
    duration = Column(Integer, nullable=False)  # Días
    max_group_size = Column(Integer, nullable=False)
    difficulty = Column(String(20), nullable=False, index=True)
    # Valores: 'easy', 'medium', 'difficult'

    # Ratings (recalculados a partir de las reviews)
    ratings_average = Column(Float, nullable=False, default=4.5)
    ratings_quantity = Column(Integer, nullable=False, default=0)

    # Precio
    price = Column(Float, nullable=False, index=True)
    price_discount = Column(Float)

    summary = Column(String(500), nullable=False)
    description = Column(Text)
    image_cover = Column(String(255), nullable=False)
    images = Column(JSON, default=list)

    # Tours secretos no aparecen en las lecturas públicas
    secret_tour = Column(Boolean, nullable=False, default=False)

    # Ubicaciones
    start_location = Column(JSON)
    start_point = Column(
        Geography(geometry_type="POINT", srid=4326).with_variant(String(100), "sqlite")
    )
    locations = Column(JSON, default=list)
    # Ejemplo: [{"type": "Point", "coordinates": [-80.1, 25.7], "day": 1, ...}]

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Contador interno de versión (bloqueo optimista)
    version_id = Column(Integer, nullable=False)

    # Relaciones
    guides = relationship(
        "User",
        secondary=tour_guides,
        back_populates="guided_tours",
        lazy="selectin",
        order_by="User.id"
    )
    reviews = relationship(
        "Review",
        primaryjoin="Tour.id == foreign(Review.tour_id)",
        viewonly=True,
        lazy="select",
        order_by="Review.id"
    )
    departures = relationship(
        "TourStartDate",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TourStartDate.id"
    )

    __mapper_args__ = {"version_id_col": version_id}

    @validates("name")
    def _set_slug(self, key, value):
        if value is None:
            raise ValidationError("Un tour debe tener un nombre")
        self.slug = slugify(value)
        return value

    @validates("start_location")
    def _set_start_point(self, key, value):
        self.start_point = point_ewkt(value)
        return value

    @validates("ratings_average")
    def _round_rating(self, key, value):
        return round(value, 1) if value is not None else value

    @validates("price", "price_discount")
    def _check_discount(self, key, value):
        price = value if key == "price" else self.price
        discount = value if key == "price_discount" else self.price_discount
        if price is not None and discount is not None and discount >= price:
            raise ValidationError(
                f"El descuento ({discount}) debe ser menor que el precio ({price})"
            )
        return value

    @property
    def start_dates(self) -> List[datetime]:
        return [departure.start_date for departure in self.departures]

    @start_dates.setter
    def start_dates(self, values: Optional[Iterable[Union[str, datetime]]]) -> None:
        self.departures = [
            TourStartDate(start_date=parse_start_date(value)) for value in (values or [])
        ]

    @property
    def duration_weeks(self) -> float:
        return round(self.duration / 7, 2) if self.duration else 0.0

    def __repr__(self):
        return f"<Tour(id={self.id}, name='{self.name}', slug='{self.slug}')>"

    def to_dict(self, include_relations: bool = False):
        """Convierte el modelo a diccionario"""
        data = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "duration": self.duration,
            "duration_weeks": self.duration_weeks,
            "max_group_size": self.max_group_size,
            "difficulty": self.difficulty,
            "ratings_average": self.ratings_average,
            "ratings_quantity": self.ratings_quantity,
            "price": self.price,
            "price_discount": self.price_discount,
            "summary": self.summary,
            "description": self.description,
            "image_cover": self.image_cover,
            "images": self.images or [],
            "start_dates": [format_start_date(value) for value in self.start_dates],
            "secret_tour": self.secret_tour,
            "start_location": self.start_location,
            "locations": self.locations or [],
            "guides": [guide.id for guide in self.guides],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "version_id": self.version_id,
        }
        if include_relations:
            data["guides"] = [guide.to_public_dict() for guide in self.guides]
            data["reviews"] = [review.to_dict() for review in self.reviews]
        return data
