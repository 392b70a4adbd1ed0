"""Error taxonomy for curriculum resolution, logging and progression.

Each error carries an ``http_status`` so an outer API layer can map it
without parsing messages:

- StructuralError: curriculum data is inconsistent (fatal, 500)
- OutOfRangeError: date is outside what the program covers (422)
- NotFoundError: unknown program / day / exercise / log (404)
- InvalidLogError: a write violates log invariants (409)
- DegradedDataError: progression history is malformed (caught by the
  engine; 500 only if it ever escapes)
"""

from __future__ import annotations


class CoreError(Exception):
    http_status: int = 500


class StructuralError(CoreError):
    """Curriculum data violates a structural invariant."""

    http_status = 500

    def __init__(self, message: str, problems: list[str] | None = None):
        super().__init__(message)
        self.problems = list(problems or [])


class StructuralGapError(StructuralError):
    """A Week or Day required by the rotation is missing."""


class OutOfRangeError(CoreError):
    http_status = 422


class DayMismatchError(OutOfRangeError):
    """A logged day_id does not match the day the calendar resolves to."""


class NotFoundError(CoreError):
    http_status = 404


class ProgramNotFoundError(NotFoundError):
    pass


class DayNotFoundError(NotFoundError):
    pass


class ExerciseNotFoundError(NotFoundError):
    pass


class WorkoutLogNotFoundError(NotFoundError):
    pass


class InvalidLogError(CoreError):
    http_status = 409


class InvalidSetSequenceError(InvalidLogError):
    """Set numbers must run 1..n with no gaps or duplicates."""


class WorkoutLogFinalizedError(InvalidLogError):
    pass


class WorkoutLogOwnershipError(InvalidLogError):
    pass


class DegradedDataError(CoreError):
    """Progression history cannot be trusted; callers degrade to a hold."""
