"""
Error taxonomy shared by the registration, merchandise order and attendance
engines. Every error is a DRF APIException, so views simply let them
propagate and ``core.exception_handler`` renders ``{message, code}``.
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class FestError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be completed.'
    default_code = 'error'


class NotFound(FestError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'not_found'


class TicketNotFound(NotFound):
    default_detail = 'Ticket not found.'
    default_code = 'ticket_not_found'


class InvalidState(FestError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'This action is not allowed in the current state.'
    default_code = 'invalid_state'


class NotApproved(InvalidState):
    default_detail = 'This merchandise order has not been approved.'
    default_code = 'not_approved'


class EligibilityDenied(FestError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not eligible for this event.'
    default_code = 'eligibility_denied'


class Forbidden(FestError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class WrongOrganizer(Forbidden):
    default_detail = 'This ticket belongs to an event you do not organize.'
    default_code = 'wrong_organizer'


class ValidationError(FestError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class DependencyFailure(FestError):
    '''
    A collaborator (mail, QR encoder, blob storage) failed. The client only
    ever sees the generic message, the cause is logged where it is raised.
    '''
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'A downstream service failed. Please try again later.'
    default_code = 'dependency_failure'

    def __init__(self, detail=None, code=None, cause=None):
        super().__init__(self.default_detail, code)
        self.cause = detail if cause is None else cause


class Conflict(FestError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'The resource was changed by another request.'
    default_code = 'conflict'


class AlreadyMarked(Conflict):
    default_detail = 'Attendance has already been marked for this ticket.'
    default_code = 'already_marked'
