"""
Error taxonomy for the planning engine.

Every error raised by a planner operation derives from PlannerError so
callers can catch one type at the boundary.
"""


class PlannerError(Exception):
    """Base class for planner errors."""

    pass


class ConfigurationError(PlannerError):
    """A required baseline day type is missing for an owner."""

    pass


class NotFoundError(PlannerError):
    """A referenced entity does not exist for the owner."""

    def __init__(self, entity: str, ref):
        self.entity = entity
        self.ref = ref
        super().__init__(f"{entity} not found: {ref!r}")


class ValidationError(PlannerError):
    """Malformed input, rejected before any state mutation."""

    pass


class IntegrityError(PlannerError):
    """An import payload references names that do not resolve within it."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__("Import rejected: " + "; ".join(problems))
