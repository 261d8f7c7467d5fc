"""Exception hierarchy shared by the step graph executor and both agents."""

from typing import Optional


class GraphError(Exception):
    """Base class for errors raised by the step graph executor."""


class SchemaError(GraphError):
    """An update referenced a field the state schema does not declare."""


class GraphValidationError(GraphError):
    """The graph definition is inconsistent and cannot be compiled."""


class RoutingError(GraphError):
    """A conditional edge predicate returned a label with no mapped target."""


class GraphRecursionError(GraphError):
    """A run executed more steps than the compiled graph allows."""


class StepExecutionError(GraphError):
    """A step raised; the run is abandoned and the cause is chained."""

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"Step '{step}' failed: {cause}")


class AgentError(Exception):
    """Base class for errors raised inside agent nodes."""


class InputValidationError(AgentError):
    """User input could not be interpreted (e.g. not a hand number)."""


class CollaboratorError(AgentError):
    """Base class for failures of an external collaborator (LLM, search)."""


class CollaboratorTimeout(CollaboratorError):
    """The collaborator did not answer within the configured bound."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Collaborator did not respond within {timeout} seconds")


class CollaboratorInvocationError(CollaboratorError):
    """Calling the collaborator raised."""


class UnknownToolError(CollaboratorError):
    """The model requested a tool that is not registered."""

    def __init__(self, tool_name: Optional[str]):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool '{tool_name}' called.")


class EmptyGenerationError(CollaboratorError):
    """The model returned blank text where a body of text is required."""


class StructuredOutputError(CollaboratorError):
    """A schema-shaped value could not be obtained from the model."""


class ReflectionParseError(StructuredOutputError):
    """The plan reflection could not be parsed into its expected shape."""
