"""
Custom Exceptions.

Application-specific exception classes for local failures.

Remote calls never raise: the transport reports every failure as a
Result value. These exceptions cover problems found on the user's machine
before a call is made (bad settings, missing build files).
"""


class NStackError(Exception):
    """Base exception for all CLI errors."""

    def __init__(self, message: str, code: str = "CLI_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class ConfigurationError(NStackError):
    """Raised when a settings file cannot be parsed or validated."""

    def __init__(self, message: str = "Invalid configuration") -> None:
        super().__init__(message, code="CFG_INVALID")


class SettingsWriteError(NStackError):
    """Raised when settings cannot be persisted."""

    def __init__(self, message: str = "Could not write settings") -> None:
        super().__init__(message, code="CFG_WRITE_FAILED")


class BuildFileError(NStackError):
    """Raised when no usable build file is found or it cannot be read."""

    def __init__(self, message: str = "Invalid build file") -> None:
        super().__init__(message, code="BUILD_FILE_ERROR")
