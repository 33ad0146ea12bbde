"""Error taxonomy of the chat core.

Collaborators raise these typed errors; the chat orchestrator is the one
place that decides whether a failure degrades functionality or becomes
the generic fallback message.
"""


class GreanlyError(Exception):
    """Base class for all domain errors."""


class MalformedRequest(GreanlyError):
    """The chat request body is not valid JSON or lacks the required shape."""


class ModerationUnavailable(GreanlyError):
    """The moderation classifier could not be reached or errored."""


class RetrievalUnavailable(GreanlyError):
    """The vector index could not be queried."""


class GenerationUnavailable(GreanlyError):
    """The model stream could not be constructed or consumed."""


class StepLimitExceeded(GreanlyError):
    """The model asked for more tool rounds than the step limit allows.

    Not a failure: the stream is finished with whatever text exists.
    """

    def __init__(self, step_limit: int) -> None:
        super().__init__(f"Step limit of {step_limit} tool rounds reached.")
        self.step_limit = step_limit
