# backend/services/tours/router.py
"""
Endpoints REST para tours
"""
from fastapi import APIRouter, Depends, Path, Request, Response, status
from sqlalchemy.orm import Session

from shared.database.base import get_db
from shared.database.models import UserRole
from shared.schemas.tour import TourCreate, TourUpdate
from shared.utils.api_features import parse_query_params
from services.auth.dependencies import restrict_to
from .service import TourService, alias_top_tours

router = APIRouter(
    prefix="/tours",
    tags=["Tours"]
)

tour_managers = [Depends(restrict_to(UserRole.ADMIN, UserRole.LEAD_GUIDE))]


def _list_tours(db: Session, query_params):
    tours, features = TourService.get_all(db, query_params)
    return {
        "status": "success",
        "results": len(tours),
        "data": {"tours": features.serialize(tours)}
    }


@router.get("", summary="Listar tours")
def get_all_tours(request: Request, db: Session = Depends(get_db)):
    return _list_tours(db, parse_query_params(request.query_params.multi_items()))


@router.get("/top-5-cheap", summary="Los 5 tours mejor valorados y más baratos")
def get_top_tours(request: Request, db: Session = Depends(get_db)):
    query_params = alias_top_tours(parse_query_params(request.query_params.multi_items()))
    return _list_tours(db, query_params)


@router.get("/tour-stats", summary="Estadísticas por dificultad")
def get_tour_stats(db: Session = Depends(get_db)):
    return {
        "status": "success",
        "data": {"stats": TourService.get_tour_stats(db)}
    }


@router.get(
    "/monthly-plan/{year}",
    dependencies=[Depends(restrict_to(UserRole.ADMIN, UserRole.LEAD_GUIDE, UserRole.GUIDE))],
    summary="Salidas de tours por mes"
)
def get_monthly_plan(year: int = Path(..., ge=1, le=9999), db: Session = Depends(get_db)):
    plan = TourService.get_monthly_plan(db, year)
    return {
        "status": "success",
        "results": len(plan),
        "data": {"plan": plan}
    }


@router.get(
    "/tours-within/{distance}/center/{latlng}/unit/{unit}",
    summary="Tours dentro de un radio"
)
def get_tours_within(
    latlng: str,
    unit: str,
    distance: float = Path(..., gt=0),
    db: Session = Depends(get_db)
):
    tours = TourService.get_tours_within(db, distance, latlng, unit)
    return {
        "status": "success",
        "results": len(tours),
        "data": {"data": [tour.to_dict() for tour in tours]}
    }


@router.get("/distances/{latlng}/unit/{unit}", summary="Distancia a cada tour")
def get_distances(latlng: str, unit: str, db: Session = Depends(get_db)):
    distances = TourService.get_distances(db, latlng, unit)
    return {
        "status": "success",
        "results": len(distances),
        "data": {"data": distances}
    }


@router.get("/{identifier}", summary="Obtener un tour por ID o slug")
def get_tour(identifier: str, db: Session = Depends(get_db)):
    tour = TourService.get_tour(db, identifier)
    return {
        "status": "success",
        "data": {"tour": tour.to_dict(include_relations=True)}
    }


@router.post("", dependencies=tour_managers, status_code=status.HTTP_201_CREATED, summary="Crear un tour")
def create_tour(data: TourCreate, db: Session = Depends(get_db)):
    tour = TourService.create(db, data)
    return {
        "status": "success",
        "data": {"data": tour.to_dict()}
    }


@router.patch("/{tour_id}", dependencies=tour_managers, summary="Actualizar un tour")
def update_tour(
    data: TourUpdate,
    tour_id: int = Path(..., gt=0),
    db: Session = Depends(get_db)
):
    tour = TourService.update(db, tour_id, data)
    return {
        "status": "success",
        "data": {"data": tour.to_dict()}
    }


@router.delete("/{tour_id}", dependencies=tour_managers, status_code=status.HTTP_204_NO_CONTENT, summary="Eliminar un tour")
def delete_tour(tour_id: int = Path(..., gt=0), db: Session = Depends(get_db)):
    TourService.delete(db, tour_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
