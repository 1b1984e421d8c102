# studyplanner/exceptions.py


class StudyPlannerError(Exception):
    """Base class for errors raised by studyplanner."""


class InvalidSlotError(StudyPlannerError, ValueError):
    """Weekday outside 0..6 or hour outside 0..23."""

    def __init__(self, weekday, hour):
        super().__init__(f"invalid slot weekday={weekday!r} hour={hour!r}")
        self.weekday = weekday
        self.hour = hour


class UnknownRecordError(StudyPlannerError, KeyError):
    """A store was asked to update or delete an id it does not hold."""
