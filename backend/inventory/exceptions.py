"""
Errors raised by the reconciliation workflows.

They are DRF APIExceptions so a view can turn any of them into
``{'error': message}`` with the matching status code.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class InventoryError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Inventory operation failed.'
    default_code = 'inventory_error'

    @property
    def message(self):
        return str(self.detail)


class ValidationError(InventoryError):
    """Malformed input, rejected before anything is written"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid'


class NotFoundError(InventoryError):
    """A referenced BOM, job, location or container does not exist"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class ConflictError(InventoryError):
    """Concurrent writers kept colliding until every retry was used"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The inventory changed while saving. Please try again.'
    default_code = 'conflict'


class StoreUnavailableError(InventoryError):
    """The database could not be reached or refused the operation"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Inventory database is unavailable.'
    default_code = 'store_unavailable'
