"""Custom exception hierarchy for the solving layer."""


class PuzzleKitError(Exception):
    """Base exception for solving failures."""


class StackMisuseError(PuzzleKitError):
    """Raised when a caller breaks the scope-stack contract."""


class StackUnderflowError(StackMisuseError):
    """Raised when popping more scopes than are live."""


class DuplicateTrackerError(StackMisuseError):
    """Raised when a tracker name is reused while still live."""


class SearchStateError(StackMisuseError):
    """Raised when the search depth and the scope depth disagree."""


class VariableConflictError(PuzzleKitError):
    """Raised when a name is redeclared with a different type."""


class NoModelError(PuzzleKitError):
    """Raised when a model is requested without a fresh satisfiable check."""


class NoCoreError(PuzzleKitError):
    """Raised when a core is requested without a fresh unsatisfiable check."""


class EncodingError(PuzzleKitError):
    """Raised when a formula cannot be expressed for the selected engine."""


class BackendError(PuzzleKitError):
    """Raised when the engine rejects a model it was handed."""


class InputError(PuzzleKitError):
    """Raised when puzzle input is malformed."""


class InvalidMoveError(PuzzleKitError):
    """Raised when a board move breaks the game rules."""
