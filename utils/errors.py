"""
Error types surfaced by the API as {success: false, message}
"""


class APIError(Exception):
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message=None, status_code=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'success': False, 'message': self.message}


class UserNotFoundError(APIError):
    status_code = 404
    default_message = 'User not found'


class DuplicateSwipeError(APIError):
    """A swipe already exists for this (swiper, swipee) pair"""
    status_code = 400
    default_message = 'Already swiped on this user'


class InvalidSwipeError(APIError):
    status_code = 400
    default_message = 'Invalid swipe'


class ValidationError(APIError):
    status_code = 400
    default_message = 'Invalid input'


class AuthenticationError(APIError):
    status_code = 401
    default_message = 'Authentication required'
