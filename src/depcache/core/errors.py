"""
depcache Error System

Design goals:
- Single canonical error code namespace (E#### format only)
- Explicit category per error (not prefix-derived)
- Stable exit codes for CI integration
- Machine-safe formatting (no emoji, no decoration)
- Classified git failures are subclasses, so callers never inspect raw text
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------
# Exit Codes (Process-Level Contract)
# ---------------------------------------------------------------------

class ExitCode(int, Enum):
    """
    Stable process exit codes.
    These values are part of the public CLI contract.
    """
    OK = 0

    CONFIG_ERROR = 2

    WORKSPACE_ERROR = 10
    ENVIRONMENT_ERROR = 11
    COMMAND_ERROR = 12
    BACKEND_ERROR = 13

    INTERNAL_ERROR = 99


# ---------------------------------------------------------------------
# Error Categories (Explicit, Not Derived)
# ---------------------------------------------------------------------

class ErrorCategory(str, Enum):
    USER = "user_error"
    ENVIRONMENT = "env_error"
    BACKEND = "backend_error"
    INTERNAL = "internal_error"


# ---------------------------------------------------------------------
# Canonical Error Codes (Single Namespace)
# ---------------------------------------------------------------------

class ErrorCode(str, Enum):
    # 1xxx – User / Workspace
    INVALID_WORKSPACE = "E1001"
    NODE_MODULES_EXIST = "E1002"

    # 2xxx – Environment
    DEPENDENCY_MISSING = "E2002"

    # 3xxx – External commands
    COMMAND_FAILED = "E3001"
    TOO_OLD_REVISION = "E3002"

    # 4xxx – Backends
    BUNDLE_NOT_FOUND = "E4001"
    BUNDLE_ALREADY_EXISTS = "E4002"
    REF_ALREADY_EXISTS = "E4003"
    RE_PULL_NEEDED = "E4004"

    # 9xxx – Internal
    INTERNAL_ERROR = "E9001"


# ---------------------------------------------------------------------
# Base Error
# ---------------------------------------------------------------------

@dataclass
class DepcacheError(Exception):
    """
    Base class for all depcache domain errors.

    Invariants:
    - error_code is immutable
    - category is explicit
    - exit_code is explicit
    - details dict for structured diagnostic info
    """

    message: str
    error_code: ErrorCode
    category: ErrorCategory
    exit_code: ExitCode
    context: Optional[Dict[str, Any]] = None
    details: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if not isinstance(self.error_code, ErrorCode):
            raise TypeError("error_code must be an ErrorCode enum")

        if not isinstance(self.category, ErrorCategory):
            raise TypeError("category must be an ErrorCategory enum")

        if not isinstance(self.exit_code, ExitCode):
            raise TypeError("exit_code must be an ExitCode enum")

        self.context = self.context or {}
        self.details = self.details or {}

        super().__init__(self.message)

    # -----------------------------------------------------------------
    # Structured Output
    # -----------------------------------------------------------------

    def to_json(self) -> Dict[str, Any]:
        """
        JSON-safe representation for CLI output.
        """
        return {
            "code": self.error_code.value,
            "category": self.category.value,
            "message": self.message,
            "context": self.context,
            "details": self.details,
        }

    # -----------------------------------------------------------------
    # Plain Text (Machine Safe)
    # -----------------------------------------------------------------

    def format(self) -> str:
        """
        Plain multi-line representation.
        No emoji, no decoration.
        """
        lines = [
            f"{self.__class__.__name__}: {self.message}",
            f"  code: {self.error_code.value}",
            f"  category: {self.category.value}",
        ]

        if self.context:
            lines.append("  context:")
            for k, v in self.context.items():
                lines.append(f"    {k}: {v}")

        if self.details:
            lines.append("  details:")
            for k, v in self.details.items():
                lines.append(f"    {k}: {v}")

        return "\n".join(lines)


# ---------------------------------------------------------------------
# External Commands
# ---------------------------------------------------------------------

class CommandReturnedNonZeroError(DepcacheError):
    """
    External process exited non-zero.

    `output` holds the full captured stderr; it is the only input
    available for classifying the failure.
    """

    def __init__(self, message: str, output: str = "", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.COMMAND_FAILED,
            category=ErrorCategory.ENVIRONMENT,
            exit_code=ExitCode.COMMAND_ERROR,
            **kwargs,
        )
        self.output = output


class CommandNotFoundError(CommandReturnedNonZeroError):
    """Executable is not on PATH."""


class TooOldRevisionError(DepcacheError):
    def __init__(self, message: str, revisions_back: Optional[int] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.TOO_OLD_REVISION,
            category=ErrorCategory.USER,
            exit_code=ExitCode.COMMAND_ERROR,
            context={"revisions_back": revisions_back} if revisions_back else None,
            **kwargs,
        )


class GitLfsNotAvailableError(DepcacheError):
    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.DEPENDENCY_MISSING,
            category=ErrorCategory.ENVIRONMENT,
            exit_code=ExitCode.ENVIRONMENT_ERROR,
            **kwargs,
        )


# ---------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------

class BundleNotFoundError(DepcacheError):
    def __init__(self, message: str, fingerprint: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.BUNDLE_NOT_FOUND,
            category=ErrorCategory.BACKEND,
            exit_code=ExitCode.BACKEND_ERROR,
            context={"fingerprint": fingerprint} if fingerprint else None,
            **kwargs,
        )


class BundleAlreadyExistsError(DepcacheError):
    def __init__(
        self,
        message: str,
        fingerprint: Optional[str] = None,
        *,
        error_code: ErrorCode = ErrorCode.BUNDLE_ALREADY_EXISTS,
        **kwargs,
    ):
        context = kwargs.pop("context", None) or {}
        if fingerprint:
            context["fingerprint"] = fingerprint
        super().__init__(
            message=message,
            error_code=error_code,
            category=ErrorCategory.BACKEND,
            exit_code=ExitCode.BACKEND_ERROR,
            context=context,
            **kwargs,
        )


class RefAlreadyExistsError(BundleAlreadyExistsError):
    """A tag or push collided with a ref the remote already has."""

    def __init__(self, ref: str, **kwargs):
        super().__init__(
            f"Ref '{ref}' already exists",
            error_code=ErrorCode.REF_ALREADY_EXISTS,
            context={"ref": ref},
            **kwargs,
        )
        self.ref = ref


class RePullNeeded(DepcacheError):
    """
    Raised by the push orchestrator only: an equivalent bundle was
    published concurrently, pull it instead of trusting the local build.
    """

    def __init__(self, message: str, fingerprint: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.RE_PULL_NEEDED,
            category=ErrorCategory.BACKEND,
            exit_code=ExitCode.BACKEND_ERROR,
            context={"fingerprint": fingerprint} if fingerprint else None,
            **kwargs,
        )


# ---------------------------------------------------------------------
# Workspace
# ---------------------------------------------------------------------

class WorkspaceError(DepcacheError):
    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_WORKSPACE,
            category=ErrorCategory.USER,
            exit_code=ExitCode.WORKSPACE_ERROR,
            context={"path": path} if path else None,
            **kwargs,
        )


class NodeModulesAlreadyExistError(DepcacheError):
    def __init__(self, message: str = "node_modules already exists, use --force to replace it", **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.NODE_MODULES_EXIST,
            category=ErrorCategory.USER,
            exit_code=ExitCode.WORKSPACE_ERROR,
            **kwargs,
        )


class InternalError(DepcacheError):
    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code=ErrorCode.INTERNAL_ERROR,
            category=ErrorCategory.INTERNAL,
            exit_code=ExitCode.INTERNAL_ERROR,
            **kwargs,
        )


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

__all__ = [
    "ExitCode",
    "ErrorCategory",
    "ErrorCode",
    "DepcacheError",
    "CommandReturnedNonZeroError",
    "CommandNotFoundError",
    "TooOldRevisionError",
    "GitLfsNotAvailableError",
    "BundleNotFoundError",
    "BundleAlreadyExistsError",
    "RefAlreadyExistsError",
    "RePullNeeded",
    "WorkspaceError",
    "NodeModulesAlreadyExistError",
    "InternalError",
]
