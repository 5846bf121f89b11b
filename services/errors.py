"""
Error types for the comment board.

Each error carries the HTTP status it maps to and a message that is safe
to return to the client.
"""


class CommentBoardError(Exception):
    """Base class for request-terminating errors"""
    status_code = 500
    default_message = 'internal server error'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(CommentBoardError):
    """Input outside the accepted length or shape"""
    status_code = 400
    default_message = 'invalid input'

    def __init__(self, message=None, field=None):
        super().__init__(message)
        self.field = field


class AuthError(CommentBoardError):
    """Reserved username used without the admin password"""
    status_code = 403
    default_message = 'unauthorized use of reserved username!'


class RateLimitError(CommentBoardError):
    """Daily posting quota already used by this IP"""
    status_code = 429
    default_message = 'you can only post one comment per day!'


class InternalError(CommentBoardError):
    """Store failure; details stay in the server log"""
    status_code = 500
    default_message = 'internal server error'
