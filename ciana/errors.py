"""
Error types for impact analysis.

Every failure aborts the whole analysis; there is no partial result.
Each error carries a stable code so that callers that cannot inspect the
exception type (the MCP tools, scripts reading stderr) can still branch on it:

  - CIANA_ERR_ARGUMENTS: wrong arity or non-numeric line/column
  - CIANA_ERR_NO_TARGET: no reference at the requested location
  - CIANA_ERR_PARSE: the front-end could not produce a tree for a file
  - CIANA_ERR_CONFIG: compilation database location unavailable
  - CIANA_ERR_IO: filesystem failure while handling paths or sources
"""

from typing import Any, Dict

ERR_ARGUMENTS = "CIANA_ERR_ARGUMENTS"
ERR_NO_TARGET = "CIANA_ERR_NO_TARGET"
ERR_PARSE = "CIANA_ERR_PARSE"
ERR_CONFIG = "CIANA_ERR_CONFIG"
ERR_IO = "CIANA_ERR_IO"


class CianaError(Exception):
    """Base class for every error raised by ciana."""

    code = "CIANA_ERR_INTERNAL"

    def to_dict(self) -> Dict[str, Any]:
        return {"error": True, "code": self.code, "message": str(self)}


class ArgumentError(CianaError):
    code = ERR_ARGUMENTS


class AnalysisError(CianaError):
    """Failure of the analysis itself (as opposed to bad invocation)."""


class NoTargetError(AnalysisError):
    code = ERR_NO_TARGET

    def __init__(self, target=None):
        self.target = target
        if target is None:
            super().__init__("no reference found at the requested location")
        else:
            super().__init__(f"no reference found at {target}")


class ParseFailureError(AnalysisError):
    code = ERR_PARSE

    def __init__(self, filename: str, reason: str = ""):
        self.filename = filename
        msg = f"failed to parse {filename}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ConfigMissingError(AnalysisError):
    code = ERR_CONFIG


class FileSystemError(AnalysisError):
    code = ERR_IO
