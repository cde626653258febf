from classdesk.models.assignment import Assignment, AssignmentStudent, AssignmentTeacher  # noqa: F401
from classdesk.models.availability import AvailabilityRecord, EntityType  # noqa: F401
from classdesk.models.student import Student  # noqa: F401
from classdesk.models.teacher import Teacher  # noqa: F401
from classdesk.models.time_slot import TimeSlot  # noqa: F401
