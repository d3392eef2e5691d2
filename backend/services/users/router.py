# backend/services/users/router.py
"""
Endpoints REST para usuarios
"""
from fastapi import APIRouter, Depends, Path, Request, Response, status
from sqlalchemy.orm import Session

from shared.database.base import get_db
from shared.database.models import User, UserRole
from shared.schemas.user import UpdateMeRequest, UserCreate, UserUpdate
from shared.utils.api_features import parse_query_params
from services.auth.dependencies import get_current_user, restrict_to
from .service import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"]
)

admin_only = [Depends(restrict_to(UserRole.ADMIN))]


@router.get("/me", summary="Obtener el usuario autenticado")
def get_me(current_user: User = Depends(get_current_user)):
    return {
        "status": "success",
        "data": {"data": current_user.to_dict()}
    }


@router.patch("/update-me", summary="Actualizar mis datos")
def update_me(
    data: UpdateMeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = UserService.update_me(db, current_user, data)
    return {
        "status": "success",
        "data": {"user": user.to_dict()}
    }


@router.delete("/delete-me", status_code=status.HTTP_204_NO_CONTENT, summary="Desactivar mi cuenta")
def delete_me(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    UserService.delete_me(db, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", dependencies=admin_only, summary="Listar usuarios")
def get_all_users(request: Request, db: Session = Depends(get_db)):
    users, features = UserService.get_all(db, parse_query_params(request.query_params.multi_items()))
    return {
        "status": "success",
        "results": len(users),
        "data": {"users": features.serialize(users)}
    }


@router.post("", dependencies=admin_only, status_code=status.HTTP_201_CREATED, summary="Crear un usuario")
def create_user(data: UserCreate, db: Session = Depends(get_db)):
    user = UserService.create(db, data)
    return {
        "status": "success",
        "data": {"data": user.to_dict()}
    }


@router.get("/{user_id}", dependencies=admin_only, summary="Obtener un usuario")
def get_user(user_id: int = Path(..., gt=0), db: Session = Depends(get_db)):
    user = UserService.get_or_404(db, user_id)
    return {
        "status": "success",
        "data": {"user": user.to_dict()}
    }


@router.patch("/{user_id}", dependencies=admin_only, summary="Actualizar un usuario (sin contraseña)")
def update_user(
    data: UserUpdate,
    user_id: int = Path(..., gt=0),
    db: Session = Depends(get_db)
):
    user = UserService.update(db, user_id, data)
    return {
        "status": "success",
        "data": {"data": user.to_dict()}
    }


@router.delete("/{user_id}", dependencies=admin_only, status_code=status.HTTP_204_NO_CONTENT, summary="Eliminar un usuario")
def delete_user(user_id: int = Path(..., gt=0), db: Session = Depends(get_db)):
    UserService.delete(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
