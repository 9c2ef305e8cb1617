from __future__ import annotations

import math

from rest_framework.exceptions import ValidationError
from rest_framework.pagination import BasePagination
from rest_framework.response import Response

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def _int_param(request, name: str, *, default: int, minimum: int, maximum: int | None = None) -> int:
    raw = request.query_params.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError({name: "Must be an integer."})
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f"between {minimum} and {maximum}" if maximum is not None else f">= {minimum}"
        raise ValidationError({name: f"Must be {bounds}."})
    return value


class DefaultPagination(BasePagination):
    """
    page/limit pagination with the list envelope:
      { data: [...], pagination: { page, limit, total, pages, has_next, has_prev } }

    A page past the end yields an empty list rather than 404.
    """
    default_limit = DEFAULT_LIMIT
    max_limit = MAX_LIMIT

    def paginate_queryset(self, queryset, request, view=None):
        self.page = _int_param(request, "page", default=1, minimum=1)
        self.limit = _int_param(request, "limit", default=self.default_limit, minimum=1, maximum=self.max_limit)
        self.total = queryset.count()

        offset = (self.page - 1) * self.limit
        return list(queryset[offset: offset + self.limit])

    def get_pagination_meta(self) -> dict:
        pages = math.ceil(self.total / self.limit) if self.total else 0
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "pages": pages,
            "has_next": self.page < pages,
            "has_prev": self.page > 1,
        }

    def get_paginated_response(self, data):
        return Response({"data": data, "pagination": self.get_pagination_meta()})

    def get_paginated_response_schema(self, schema):
        return {
            "type": "object",
            "required": ["data", "pagination"],
            "properties": {
                "data": schema,
                "pagination": {
                    "type": "object",
                    "properties": {
                        "page": {"type": "integer", "example": 1},
                        "limit": {"type": "integer", "example": DEFAULT_LIMIT},
                        "total": {"type": "integer", "example": 42},
                        "pages": {"type": "integer", "example": 3},
                        "has_next": {"type": "boolean"},
                        "has_prev": {"type": "boolean"},
                    },
                },
            },
        }

    def get_schema_operation_parameters(self, view):
        return [
            {
                "name": "page",
                "required": False,
                "in": "query",
                "description": "Page number (>= 1).",
                "schema": {"type": "integer", "minimum": 1},
            },
            {
                "name": "limit",
                "required": False,
                "in": "query",
                "description": f"Page size (1-{MAX_LIMIT}, default {DEFAULT_LIMIT}).",
                "schema": {"type": "integer", "minimum": 1, "maximum": MAX_LIMIT},
            },
        ]


def paginate(request, queryset, serializer_class, *, paginator: BasePagination | None = None, context=None) -> Response:
    """
    Shared pagination helper to enforce a stable contract:
      { data, pagination }
    """
    p = paginator or DefaultPagination()
    page = p.paginate_queryset(queryset, request)
    ser = serializer_class(page, many=True, context=context or {"request": request})
    return p.get_paginated_response(ser.data)
