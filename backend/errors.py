"""
errors.py — Domain errors raised by services and repositories.
Each carries the HTTP status the boundary answers with; main.py turns them
into {"success": false, "message": ...} responses.
"""


class HabitTrackerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(HabitTrackerError):
    """Missing or invalid input field."""
    status_code = 400


class Unauthenticated(HabitTrackerError):
    status_code = 401


class NotFound(HabitTrackerError):
    """Resource absent, or not owned by the caller. The two are not told apart."""
    status_code = 404


class Conflict(HabitTrackerError):
    status_code = 409
