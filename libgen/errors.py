"""Error taxonomy for the libgen pipeline.

Three families reach the caller:

- :class:`ValidationError` -- caller input could not be decoded.  Raised
  before any filesystem mutation, so it is always safe to fix and retry.
- :class:`FileSystemError` -- an adapter could not create a directory or
  write a file.  Prior writes in the same run are not rolled back.
- :class:`ResolutionError` -- an upstream library required by a composite
  (domain) request could not be generated.

All of them derive from :class:`LibgenError` so a CLI-style caller can catch
a single type, print it, and exit non-zero.
"""

from __future__ import annotations


class LibgenError(Exception):
    """Base class for every error raised by the pipeline."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(LibgenError):
    """Raised when caller-supplied options fail validation.

    The string form is a single human-readable line naming each failing
    field and the reason it failed.
    """

    def __init__(
        self,
        failures: list[tuple[str, str]],
        subject: str = "options",
    ) -> None:
        self.failures = list(failures)
        self.subject = subject
        details = "; ".join(f"{field}: {reason}" for field, reason in self.failures)
        super().__init__(f"Invalid {subject}: {details}")

    @classmethod
    def single(cls, field: str, reason: str, subject: str = "options") -> ValidationError:
        return cls([(field, reason)], subject=subject)

    @property
    def fields(self) -> list[str]:
        return [field for field, _ in self.failures]


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


class FileSystemError(LibgenError):
    """Raised when an adapter operation fails.

    Attributes:
        operation: Name of the adapter operation (``write_file``, ...).
        path: Workspace-relative path the operation targeted.
        cause: The underlying error message.
    """

    operation = "filesystem"

    def __init__(self, path: str, cause: str, operation: str | None = None) -> None:
        if operation is not None:
            self.operation = operation
        self.path = path
        self.cause = cause
        super().__init__(f"{self.operation} failed for {path}: {cause}")


class DirectoryCreationError(FileSystemError):
    operation = "make_directory"


class FileWriteError(FileSystemError):
    operation = "write_file"


class FileReadError(FileSystemError):
    operation = "read_file"


# ---------------------------------------------------------------------------
# Dependency resolution
# ---------------------------------------------------------------------------


class ResolutionError(LibgenError):
    """Raised when a composite request cannot generate a required library."""

    def __init__(self, dependency: str, cause: str) -> None:
        self.dependency = dependency
        self.cause = cause
        super().__init__(f"Failed to generate required dependency {dependency}: {cause}")
