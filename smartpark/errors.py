class ParkingError(Exception):
    """Base class for every failure the parking core reports to a caller."""

    status_code = 400
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ParkingError):
    """Malformed input, detected before anything is written."""

    status_code = 400
    kind = "validation"


class NotFoundError(ParkingError):
    status_code = 404
    kind = "not_found"


class ConflictError(ParkingError):
    """Mutually exclusive state: occupied slot, duplicate plate or payment, double exit."""

    status_code = 409
    kind = "conflict"


class InvalidStateError(ParkingError):
    """Operation not allowed in the record's current lifecycle state."""

    status_code = 422
    kind = "invalid_state"
