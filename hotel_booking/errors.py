"""Booking errors and their HTTP rendering.

Services raise the exceptions below; ``exception_handler`` is installed as the
DRF ``EXCEPTION_HANDLER`` and turns them into responses. Serializer validation
failures are reported as 422 like the domain validation errors.
"""

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class BookingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The booking request could not be processed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_payload(self):
        return {"detail": self.message}


class ValidationError(BookingError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Invalid booking data."
    field = None

    def __init__(self, message=None, field=None):
        super().__init__(message)
        if field is not None:
            self.field = field

    def as_payload(self):
        if self.field:
            return {self.field: [self.message]}
        return {"non_field_errors": [self.message]}


class InvalidRangeError(ValidationError):
    default_message = "check_out must be after check_in"
    field = "check_out"


class MissingFileError(ValidationError):
    default_message = "Payment proof is required."
    field = "payment_proof"


class UnsupportedFileTypeError(ValidationError):
    default_message = "Payment proof must be a JPEG, PNG or PDF file."
    field = "payment_proof"


class FileTooLargeError(ValidationError):
    default_message = "Payment proof must not be larger than 5 MB."
    field = "payment_proof"


class RoomUnavailableError(ValidationError):
    default_message = "Room is not available for the selected dates"
    field = "room_id"


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class RoomNotFoundError(NotFoundError):
    default_message = "Room not found."


class BookingNotFoundError(NotFoundError):
    default_message = "Booking not found."


class CancellationNotAllowedError(BookingError):
    default_message = "This booking can no longer be cancelled."


class StorageError(BookingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Payment proof storage failed."


class StorageWriteError(StorageError):
    default_message = "Could not store the payment proof."


class StorageReadError(StorageError):
    default_message = "Could not read the payment proof."


def exception_handler(exc, context):
    if isinstance(exc, BookingError):
        if isinstance(exc, StorageError):
            logger.error("Storage failure in %s: %s", context.get("view").__class__.__name__, exc.message)
        return Response(exc.as_payload(), status=exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is not None and isinstance(exc, exceptions.ValidationError):
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    return response
