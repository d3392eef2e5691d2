# backend/shared/schemas/base.py
"""
Schemas base y utilidades reutilizables
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import ClassVar, List, Literal, Optional, Tuple


class RequestBase(BaseModel):
    """Base para payloads de entrada"""
    model_config = ConfigDict(str_strip_whitespace=True)


class PartialUpdate(RequestBase):
    """
    Actualización parcial: los campos omitidos no se tocan

    Un null explícito solo se acepta en los campos listados en
    nullable_fields (columnas opcionales del modelo).
    """
    nullable_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def _reject_explicit_nulls(self):
        nulls = sorted(
            name for name in self.model_fields_set
            if getattr(self, name) is None and name not in self.nullable_fields
        )
        if nulls:
            raise ValueError(f"Los campos {', '.join(nulls)} no admiten null")
        return self


class GeoPoint(BaseModel):
    """Punto GeoJSON: coordinates = [longitud, latitud]"""
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=2)
    address: Optional[str] = None
    description: Optional[str] = None
    day: Optional[int] = Field(None, ge=1)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "type": "Point",
                "coordinates": [-115.570154, 51.178456],
                "address": "224 Banff Ave, Banff, AB, Canada",
                "description": "Banff National Park"
            }
        }
    )
