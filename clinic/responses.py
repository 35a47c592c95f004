"""Uniform JSON envelope used by every clinic endpoint."""
from __future__ import annotations

from typing import Any, Optional

from rest_framework import status
from rest_framework.response import Response


def success(data: Any = None, message: Optional[str] = None, status_code: int = status.HTTP_200_OK) -> Response:
    body: dict[str, Any] = {'isSuccess': True}
    if message is not None:
        body['message'] = message
    if data is not None:
        body['data'] = data
    return Response(body, status=status_code)


def failure(message: str, error: Any = None, status_code: int = status.HTTP_400_BAD_REQUEST) -> Response:
    body: dict[str, Any] = {'isSuccess': False, 'message': message}
    if error is not None:
        body['error'] = error
    return Response(body, status=status_code)
