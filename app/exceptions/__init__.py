"""Custom exceptions for the Diary application."""

class DiaryError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(DiaryError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class ValidationError(BusinessLogicError):
    """Raised when a form draft fails validation; nothing is saved."""
    def __init__(self, message, errors=None):
        self.errors = list(errors or [message])
        super().__init__(message, payload={'errors': self.errors})

class NotFoundError(DiaryError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)
