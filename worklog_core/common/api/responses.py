from __future__ import annotations

from typing import Any

from rest_framework import status as http_status
from rest_framework.response import Response


def envelope(data: Any = None, *, message: str | None = None, status: int = http_status.HTTP_200_OK) -> Response:
    """Success envelope: { data, message? }."""
    body: dict[str, Any] = {"data": data}
    if message:
        body["message"] = message
    return Response(body, status=status)


def created(data: Any, *, message: str | None = None) -> Response:
    return envelope(data, message=message, status=http_status.HTTP_201_CREATED)


def deleted(message: str) -> Response:
    return envelope(None, message=message)
