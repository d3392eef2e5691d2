from .service import TourService
from .router import router as tours_router

__all__ = ["TourService", "tours_router"]
