"""
erdforge Custom Exceptions

This module defines custom exception classes used throughout erdforge.
"""


class ErdForgeError(Exception):
    """Base exception for all erdforge errors."""
    pass


class ParseError(ErdForgeError):
    """
    Raised when the parser is handed input it cannot work with at all.

    Malformed statements never raise; they are dropped. This is reserved for
    input that is not SQL text in the first place.

    Attributes:
        content: The offending input, as text
        reason: Description of why parsing failed
    """
    def __init__(self, content, reason: str = "Unusable parser input"):
        self.content = content
        self.reason = reason
        text = repr(content)
        # Truncate long input for readability
        display = text[:100] + "..." if len(text) > 100 else text
        super().__init__(f"{reason}: {display}")


class ValidationError(ErdForgeError):
    """Raised when an edit or a loaded document would break schema invariants."""
    pass
