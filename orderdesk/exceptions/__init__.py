"""Custom exceptions for the orderdesk service."""


class OrderDeskError(Exception):
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


class BusinessLogicError(OrderDeskError):
    """Exception raised for business rule violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class ValidationError(BusinessLogicError):
    """Raised when an order payload fails field validation.

    ``errors`` maps field paths (``details.0.quantity``) to messages.
    """
    def __init__(self, errors, message="Order data is invalid"):
        self.errors = dict(errors)
        super().__init__(message, status_code=422, payload={'errors': self.errors})


class NotFoundError(OrderDeskError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class SubmissionError(OrderDeskError):
    """Raised when the ERP backend rejects or cannot receive an order."""
    def __init__(self, message="Order submission failed", status_code=502, backend_status=None):
        payload = {'backend_status': backend_status} if backend_status is not None else None
        super().__init__(message, status_code, payload)
        self.backend_status = backend_status


class PolicyConflictError(OrderDeskError):
    """Raised when per-line and order-level tax/discount inputs are mixed."""
    def __init__(self, message):
        super().__init__(message, 500)


class InvalidAmount(ValueError):
    """Raised when a value cannot be read as a decimal amount."""


class InvalidLineItem(ValueError):
    """Raised when a line item reaching the aggregator breaks its contract.

    Form validation is expected to stop these earlier; seeing one means a
    caller skipped validation.
    """
