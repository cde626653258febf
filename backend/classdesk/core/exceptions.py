class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class SchedulerError(AppError):
    """Raised when a scheduling request is logically invalid."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class UnknownDayError(SchedulerError):
    """Raised when a day name or date key is outside the configured week."""
    def __init__(self, value: str):
        super().__init__(f"Unknown day bucket: {value}", details={"value": value})


class CapacityError(SchedulerError):
    """Raised when an assignment carries more teachers or students than allowed."""
    def __init__(self, *, teachers: int, students: int, max_teachers: int, max_students: int):
        problems = []
        if teachers > max_teachers:
            problems.append(f"at most {max_teachers} teacher(s) allowed, got {teachers}")
        if students > max_students:
            problems.append(f"at most {max_students} student(s) allowed, got {students}")
        super().__init__(
            "Class capacity exceeded: " + "; ".join(problems),
            details={
                "teachers": teachers,
                "students": students,
                "max_teachers": max_teachers,
                "max_students": max_students,
            },
        )


class SlotSequenceError(SchedulerError):
    """Raised when a class duration cannot be laid out over consecutive slots."""


class ConflictError(AppError):
    """Raised when target days collide with another class at the same slot.

    ``day_conflicts`` maps each conflicting day to the ids that overlap there.
    The message names people when names are present and falls back to ids.
    """
    def __init__(self, day_conflicts: dict[str, dict], message: str | None = None):
        self.day_conflicts = day_conflicts
        lines = []
        for day, info in day_conflicts.items():
            parts = []
            teachers = info.get("conflicting_teacher_names") or info.get("conflicting_teacher_ids")
            students = info.get("conflicting_student_names") or info.get("conflicting_student_ids")
            if teachers:
                parts.append("Teacher(s): " + ", ".join(teachers))
            if students:
                parts.append("Student(s): " + ", ".join(students))
            lines.append(f"{day}: {', '.join(parts) or 'conflicting class at this time'}")
        super().__init__(
            message or "Scheduling conflicts: " + "; ".join(lines),
            status_code=409,
            details={"days": day_conflicts},
        )


class ValidationRejected(AppError):
    """Raised when the authoritative validation gate rejects a day's candidate."""
    def __init__(self, day: str, errors: list[str], *, rolled_back: bool = False):
        self.day = day
        self.errors = list(errors)
        super().__init__(
            f"{day}: {', '.join(errors)}",
            status_code=422,
            details={"day": day, "errors": self.errors, "rolled_back": rolled_back},
        )


class PartialDeletionFailure(AppError):
    """Raised when a delete sweep fails after earlier deletes already succeeded.

    Without a unit of work the store is left with missing day coverage; the
    deleted rows are not recreated.
    """
    def __init__(self, *, deleted_ids: list[str], failed_id: str, cause: Exception, rolled_back: bool = False):
        self.deleted_ids = list(deleted_ids)
        self.failed_id = failed_id
        self.rolled_back = rolled_back
        suffix = "changes were rolled back" if rolled_back else "operation aborted to prevent further partial deletion"
        super().__init__(
            f"Failed to delete assignment {failed_id}; {suffix}",
            status_code=500,
            details={
                "deleted_ids": self.deleted_ids,
                "failed_id": failed_id,
                "rolled_back": rolled_back,
                "cause": str(cause),
            },
        )
