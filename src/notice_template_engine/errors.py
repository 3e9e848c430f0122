"""Exceptions raised by the notice template engine.

Only request-level failures are exceptions. A substitution whose phrase is
not found or a category whose table cannot be located is reported in the
mutation report and never aborts generation.
"""


class EngineError(Exception):
    """Base class for every fatal engine failure."""

    stage = "engine"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def user_message(self) -> str:
        """Single user-facing line naming the stage and the underlying cause."""
        cause = self.__cause__
        if cause is not None:
            return f"{self.stage}: {self.message} ({type(cause).__name__}: {cause})"
        return f"{self.stage}: {self.message}"


class ContainerError(EngineError):
    """Archive unreadable or body entry missing."""

    stage = "container"


class ParseError(EngineError):
    """Body entry is not well-formed XML."""

    stage = "parse"


class SerializationError(EngineError):
    """Mutated tree cannot be serialized back to XML."""

    stage = "serialize"


class OverlappingSubstitutionError(EngineError):
    """Two substitutions matched overlapping ranges of the virtual text."""

    stage = "substitution"

    def __init__(self, first_id: str, second_id: str):
        super().__init__(
            f"substitutions '{first_id}' and '{second_id}' match overlapping text"
        )
        self.first_id = first_id
        self.second_id = second_id


class RenderError(EngineError):
    """External converter failed to produce the rendered document."""

    stage = "render"


class JobError(EngineError):
    """Generation job or rules profile could not be loaded."""

    stage = "job"
