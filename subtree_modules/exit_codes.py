"""
Standard exit codes and error taxonomy for subtree-modules commands.

Following Unix/POSIX conventions for command-line tools.
"""
from typing import Optional, Sequence

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NOT_FOUND = 64           # Module not tracked / no match for an explicit name
CONFIG_ERROR = 66        # Manifest or configuration file error
PERMISSION_ERROR = 67    # Insufficient permissions
DATA_ERROR = 70          # Data format or validation error
PARTIAL_SUCCESS = 71     # Some operations succeeded, some failed
TOOL_ERROR = 72          # git exited non-zero or is missing
PRECONDITION_ERROR = 73  # Host path / repository / init / collision checks
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': GENERAL_ERROR,
    'PermissionError': PERMISSION_ERROR,
    'ValueError': DATA_ERROR,
    'KeyError': DATA_ERROR,
    'DataFileParseError': DATA_ERROR,
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
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class SubtreeModulesError(CommandError):
    """
    Base class for the subtree-modules error taxonomy.

    Every error carries a stable ``code`` (the category name) alongside the
    human-readable message, so callers and JSON output can branch on it.
    """
    code = "SubtreeModulesError"
    default_exit_code = GENERAL_ERROR

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message, exit_code if exit_code is not None else self.default_exit_code)


class PathNotFound(SubtreeModulesError):
    """Raised when a host path does not exist or is not a directory."""
    code = "PathNotFound"
    default_exit_code = PRECONDITION_ERROR

    def __init__(self, path):
        super().__init__(f"Path not found or not a directory: {path}")
        self.path = str(path)


class NotAVersionControlRepository(SubtreeModulesError):
    """Raised when the host path has no .git metadata."""
    code = "NotAVersionControlRepository"
    default_exit_code = PRECONDITION_ERROR

    def __init__(self, path):
        super().__init__(f"Not a git repository: {path}")
        self.path = str(path)


class NotInitialized(SubtreeModulesError):
    """Raised when the host repository has no module manifest yet."""
    code = "NotInitialized"
    default_exit_code = PRECONDITION_ERROR

    def __init__(self, path):
        super().__init__(
            f"Repository is not initialized for subtree modules (missing {path}). "
            f"Run 'subtree-modules init' first."
        )
        self.path = str(path)


class ResourceExists(SubtreeModulesError):
    """Raised when a module is already tracked or its directory collides."""
    code = "ResourceExists"
    default_exit_code = PRECONDITION_ERROR


class ObjectNotFound(SubtreeModulesError):
    """Raised when a module is not tracked in the manifest."""
    code = "ObjectNotFound"
    default_exit_code = NOT_FOUND


class InvalidModuleName(SubtreeModulesError):
    """Raised when a module name contains characters outside [A-Za-z0-9_.-]."""
    code = "InvalidModuleName"
    default_exit_code = USAGE_ERROR

    def __init__(self, name: str):
        super().__init__(f"Invalid module name '{name}': use only letters, digits, '_', '.' and '-'")
        self.name = name


class ManifestParseError(SubtreeModulesError):
    """Raised when the module manifest cannot be parsed."""
    code = "ManifestParseError"
    default_exit_code = CONFIG_ERROR


class ManifestWriteError(SubtreeModulesError):
    """Raised when the module manifest cannot be written."""
    code = "ManifestWriteError"
    default_exit_code = CONFIG_ERROR


class ToolNotFound(SubtreeModulesError):
    """Raised when the git executable cannot be located."""
    code = "ToolNotFound"
    default_exit_code = TOOL_ERROR

    def __init__(self, executable: str):
        super().__init__(f"Executable not found on PATH: {executable}")
        self.executable = executable


class ExternalToolError(SubtreeModulesError):
    """Raised when git exits with a non-zero status."""
    code = "ExternalToolError"
    default_exit_code = TOOL_ERROR

    def __init__(self, arguments: Sequence[str], returncode: int, output: Sequence[str]):
        self.arguments = list(arguments)
        self.returncode = returncode
        self.output = list(output)
        cmd = ' '.join(self.arguments)
        tail = self.output[-1] if self.output else ''
        message = f"git {cmd} failed with exit code {returncode}"
        if tail:
            message += f": {tail}"
        super().__init__(message)
