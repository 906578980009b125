"""Error taxonomy for the chat and submission workflow."""


class AutomationChatError(Exception):
    """Base class for all workflow errors."""


class ChatUnavailable(AutomationChatError):
    """The remote chat service could not produce a reply."""


class ExtractionFailure(AutomationChatError):
    """An embedded action signal was found but could not be parsed."""


class SubmissionFailure(AutomationChatError):
    """The execution endpoint could not be called."""


class InvalidTransition(AutomationChatError):
    """The requested operation is not allowed in the current state."""

    def __init__(self, operation: str, state: str):
        super().__init__(f"Cannot {operation} while {state}")
        self.operation = operation
        self.state = state
