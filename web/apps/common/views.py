"""Shared DRF view plumbing: error rendering and DTO parsing.

Views stay small: they parse the payload with a pydantic DTO, delegate to
a service and return a Response. Classified ``DomainError`` exceptions are
rendered here with their own status; anything else is logged with the
request id and rendered as a generic 500.
"""

import logging

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from . import errors

logger = logging.getLogger("api")

NO_STORE = {"Cache-Control": "no-store"}


def parse(dto_cls: type[BaseModel], data) -> BaseModel:
    """Validate ``data`` against ``dto_cls``.

    Raises:
        errors.ValidationError: When pydantic rejects the payload.
    """
    try:
        return dto_cls.model_validate(data)
    except PydanticValidationError as e:
        raise errors.ValidationError(str(e)) from e


def page_params(request, default_size: int = 20, max_size: int = 100) -> tuple[int, int]:
    """Read ``page`` and ``page_size`` from the query string.

    ``page_size`` is clamped into ``[1, max_size]``.

    Raises:
        errors.ValidationError: Non-numeric values.
    """
    try:
        page = int(request.GET.get("page") or 1)
        page_size = int(request.GET.get("page_size") or default_size)
    except ValueError as e:
        raise errors.ValidationError("page and page_size must be integers") from e
    return page, max(1, min(page_size, max_size))


class DomainAPIView(APIView):
    """APIView that renders ``DomainError`` subclasses as JSON bodies."""

    def handle_exception(self, exc):
        if isinstance(exc, errors.DomainError):
            if isinstance(exc, errors.InternalError):
                logger.error("internal error", extra={"path": self.request.path})
            return Response(exc.as_body(), status=exc.status_code, headers=NO_STORE)
        try:
            return super().handle_exception(exc)
        except Exception:
            # DRF re-raises what it cannot map; never leak details.
            logger.exception("unhandled error", extra={"path": self.request.path})
            body = errors.InternalError().as_body()
            return Response(body, status=500, headers=NO_STORE)
