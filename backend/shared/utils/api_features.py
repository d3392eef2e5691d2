# shared/utils/api_features.py
"""
Composición de consultas a partir de los query params de la petición

Uso:
    features = (
        APIFeatures(Tour, select(Tour), params)
        .filter()
        .sort()
        .limit_fields()
        .paginate()
    )
    tours = features.execute(db)
"""
import operator
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy import Select
from sqlalchemy.orm import Session

from .exceptions import ValidationError

QueryParams = Mapping[str, Union[str, List[str]]]

# Claves de control que nunca se convierten en predicados
EXCLUDED_FIELDS = ("page", "sort", "limit", "fields")

# Campos que admiten valores repetidos (?difficulty=easy&difficulty=medium)
HPP_WHITELIST = (
    "price",
    "duration",
    "difficulty",
    "ratings_quantity",
    "ratings_average",
    "max_group_size",
)

# Columnas que nunca se pueden filtrar, ordenar ni proyectar
SENSITIVE_FIELDS = ("password", "password_reset_token", "password_reset_expires")

# Columnas espaciales: solo se consultan con las búsquedas geográficas
SPATIAL_FIELDS = ("start_point",)

# Campos internos excluidos de la proyección por defecto
HIDDEN_FIELDS = ("version_id",)

OPERATORS = {
    "gte": operator.ge,
    "gt": operator.gt,
    "lte": operator.le,
    "lt": operator.lt,
}

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100

_OPERATOR_KEY = re.compile(r"^(\w+)\[(\w+)\]$")


def parse_query_params(
    items: Iterable[Tuple[str, str]],
    whitelist: Sequence[str] = HPP_WHITELIST
) -> Dict[str, Union[str, List[str]]]:
    """
    Aplanar los query params (contaminación de parámetros)

    Un campo del whitelist repetido se conserva como lista; cualquier otra
    clave repetida se queda con su último valor.
    """
    grouped: Dict[str, List[str]] = {}
    for key, value in items:
        grouped.setdefault(key, []).append(value)

    params: Dict[str, Union[str, List[str]]] = {}
    for key, values in grouped.items():
        if key in whitelist and len(values) > 1:
            params[key] = values
        else:
            params[key] = values[-1]
    return params


def _last(value: Union[str, List[str], None]) -> Optional[str]:
    if isinstance(value, list):
        return value[-1] if value else None
    return value


def _positive_int(value: Union[str, List[str], None], default: int) -> int:
    """Parseo permisivo: cualquier valor inválido vuelve al valor por defecto"""
    try:
        number = int(_last(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


class APIFeatures:
    """
    Filtro, orden, proyección y paginación sobre un Select de SQLAlchemy
    """

    def __init__(
        self,
        model,
        query: Select,
        query_params: QueryParams,
        max_limit: Optional[int] = None
    ):
        self.model = model
        self.query = query
        self.query_params = dict(query_params)
        self.max_limit = max_limit

        self.fields: Optional[List[str]] = None
        self.excluded_fields: List[str] = list(HIDDEN_FIELDS)
        self.page = DEFAULT_PAGE
        self.limit = DEFAULT_LIMIT
        self.skip = 0

    def _column(self, name: str):
        columns = self.model.__table__.columns
        if name in SENSITIVE_FIELDS or name in SPATIAL_FIELDS or name not in columns:
            raise ValidationError(f"Campo no válido en la consulta: '{name}'")
        return columns[name]

    def _coerce(self, column, value: str) -> Any:
        """Convertir el valor del query string al tipo de la columna"""
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            raise ValidationError(f"No se puede filtrar por el campo '{column.name}'")

        try:
            if python_type is bool:
                lowered = value.lower()
                if lowered in ("true", "1"):
                    return True
                if lowered in ("false", "0"):
                    return False
                raise ValueError(value)
            if python_type is datetime:
                parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
                return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
            return python_type(value)
        except ValueError:
            raise ValidationError(f"Valor inválido para '{column.name}': {value}")

    def filter(self) -> "APIFeatures":
        filters = {
            key: value for key, value in self.query_params.items()
            if key not in EXCLUDED_FIELDS
        }

        for key, value in filters.items():
            match = _OPERATOR_KEY.match(key)
            field, op = (match.group(1), match.group(2)) if match else (key, None)
            column = self._column(field)

            if op is None:
                if isinstance(value, list):
                    values = [self._coerce(column, item) for item in value]
                    self.query = self.query.where(column.in_(values))
                else:
                    self.query = self.query.where(column == self._coerce(column, value))
                continue

            if op not in OPERATORS:
                raise ValidationError(f"Operador no soportado: '{op}'")
            self.query = self.query.where(
                OPERATORS[op](column, self._coerce(column, _last(value)))
            )

        return self

    def sort(self) -> "APIFeatures":
        sort_by = _last(self.query_params.get("sort"))
        clauses = []

        if sort_by:
            for name in sort_by.split(","):
                name = name.strip()
                if not name:
                    continue
                descending = name.startswith("-")
                column = self._column(name.lstrip("-"))
                clauses.append(column.desc() if descending else column.asc())

        # Orden natural (y desempate estable para la paginación)
        clauses.append(self.model.__table__.columns["id"].asc())
        self.query = self.query.order_by(*clauses)
        return self

    def limit_fields(self) -> "APIFeatures":
        fields = _last(self.query_params.get("fields"))
        if not fields:
            return self

        included, excluded = [], []
        for name in fields.split(","):
            name = name.strip()
            if not name or name.lstrip("-") in SENSITIVE_FIELDS:
                continue
            if name.startswith("-"):
                excluded.append(name[1:])
            else:
                included.append(name)

        if included:
            self.fields = included
        self.excluded_fields.extend(excluded)
        return self

    def paginate(self) -> "APIFeatures":
        self.page = _positive_int(self.query_params.get("page"), DEFAULT_PAGE)
        self.limit = _positive_int(self.query_params.get("limit"), DEFAULT_LIMIT)
        if self.max_limit is not None:
            self.limit = min(self.limit, self.max_limit)
        self.skip = (self.page - 1) * self.limit

        self.query = self.query.offset(self.skip).limit(self.limit)
        return self

    def project(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Aplicar la proyección de campos a un documento serializado"""
        if self.fields is not None:
            return {
                key: value for key, value in document.items()
                if key == "id" or key in self.fields
            }
        return {
            key: value for key, value in document.items()
            if key not in self.excluded_fields
        }

    def execute(self, db: Session) -> list:
        return list(db.execute(self.query).scalars().unique().all())

    def serialize(self, items: Iterable) -> List[Dict[str, Any]]:
        return [self.project(item.to_dict()) for item in items]
