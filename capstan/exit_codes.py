"""
Standard exit codes and error types for capstan commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NOT_FOUND = 64           # Image or source file does not exist
CONFIG_ERROR = 66        # Configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
DATA_ERROR = 70          # Data format or validation error
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': NOT_FOUND,
    'PermissionError': PERMISSION_ERROR,
    'IsADirectoryError': GENERAL_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'YAMLError': DATA_ERROR,
    'ScannerError': DATA_ERROR,
    'ParserError': DATA_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: Exception) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class UnsupportedFormatError(CommandError):
    """Raised when a file is not a QCOW2, VDI or VMDK disk image."""
    def __init__(self, path: str, detail: Optional[str] = None):
        message = f"{path}: unsupported image format"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, DATA_ERROR)
        self.path = path


class ImageNotFoundError(CommandError):
    """Raised when an import source or a stored image is missing."""
    def __init__(self, message: str):
        super().__init__(message, NOT_FOUND)


class DirectoryCreateError(CommandError):
    """Raised when an image directory cannot be created."""
    def __init__(self, directory: str):
        super().__init__(f"{directory}: mkdir failed", PERMISSION_ERROR)
        self.directory = directory


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class InvalidImageNameError(CommandError):
    """Raised when an image name points at the repository root or outside it."""
    def __init__(self, name: str):
        super().__init__(f"{name!r}: invalid image name", USAGE_ERROR)
        self.name = name
