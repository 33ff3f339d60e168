"""code-blackbox: signature-preserving redaction of TypeScript/JavaScript sources."""

__version__ = "0.1.0"

from .config import HIDDEN_INLINE, HIDDEN_LINE, BlackboxConfig
from .edits import LineWindow
from .reconciler import redact_output
from .redactor import Redactor, create_redactor, redact_file
from .tree_cache import TreeCache

__all__ = [
    "__version__",
    "BlackboxConfig",
    "HIDDEN_INLINE",
    "HIDDEN_LINE",
    "LineWindow",
    "Redactor",
    "TreeCache",
    "create_redactor",
    "redact_file",
    "redact_output",
]
