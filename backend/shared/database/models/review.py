# shared/database/models/review.py
"""
Modelo de reviews de tours
"""
from sqlalchemy import Column, Integer, Text, DateTime, UniqueConstraint, func
from sqlalchemy.orm import relationship

from shared.database.base import Base


class Review(Base):
    """
    Tabla de reviews

    tour_id / user_id son referencias resueltas por búsqueda: borrar un tour
    o un usuario no borra sus reviews.
    """
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    review = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)  # 1 a 5

    tour_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    version_id = Column(Integer, nullable=False)

    tour = relationship(
        "Tour",
        primaryjoin="foreign(Review.tour_id) == Tour.id",
        viewonly=True,
        lazy="select"
    )
    user = relationship(
        "User",
        primaryjoin="foreign(Review.user_id) == User.id",
        viewonly=True,
        lazy="joined"
    )

    # Un usuario solo puede opinar una vez por tour
    __table_args__ = (
        UniqueConstraint("tour_id", "user_id", name="uq_review_tour_user"),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self):
        return f"<Review(id={self.id}, tour_id={self.tour_id}, rating={self.rating})>"

    def to_dict(self):
        return {
            "id": self.id,
            "review": self.review,
            "rating": self.rating,
            "tour_id": self.tour_id,
            "user_id": self.user_id,
            "user": (
                {"id": self.user.id, "name": self.user.name, "photo": self.user.photo}
                if self.user else None
            ),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "version_id": self.version_id,
        }
