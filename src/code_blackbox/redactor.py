"""
Signature-preserving redaction of TypeScript/JavaScript source files.

Runs the full pipeline over one file:

    text -> TreeCache -> NodeSelector -> EditPlanner -> apply_edits -> text

Implementation bodies and initializers are replaced by comment markers while
signatures, type annotations and documentation comments stay intact. The
output always has exactly as many lines as the input.
"""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING

from .applier import apply_edits
from .config import BlackboxConfig
from .edits import LineWindow
from .planner import plan_edits
from .selector import select_candidates
from .tree_cache import TreeCache

if TYPE_CHECKING:
    from .selector import CandidateNode

logger = logging.getLogger(__name__)

WindowLike = LineWindow | tuple[int, int]


def coerce_window(window: WindowLike | None, line_count: int) -> LineWindow:
    """Turn an optional window (or a (start, end) pair) into a LineWindow."""
    if window is None:
        return LineWindow.whole(line_count)
    if isinstance(window, LineWindow):
        return window
    start, end = window
    return LineWindow(int(start), int(end))


class Redactor:
    """
    Redacts implementation details from source files.

    One Redactor owns one TreeCache, so repeated calls for an unchanged file
    reuse the parsed tree. Selection counts per candidate kind are kept for
    reporting.
    """

    def __init__(
        self,
        config: BlackboxConfig | None = None,
        cache: TreeCache | None = None,
    ):
        """
        Initialize the redactor.

        Args:
            config: Marker text and file handling options
            cache: Tree cache to share with other redactors (optional)
        """
        self.config = config or BlackboxConfig()
        self.cache = cache if cache is not None else TreeCache()
        self.redaction_counts: Counter[str] = Counter()

    def candidates(self, path: Path | str, text: str) -> list[CandidateNode]:
        """Return the redaction candidates selected for a file."""
        return select_candidates(self.cache.get(path, text))

    def redact_file(
        self,
        path: Path | str,
        text: str,
        window: WindowLike | None = None,
    ) -> str:
        """
        Redact a whole file, optionally restricting edits to a line window.

        Lines outside the window are returned unchanged, except that a
        collapsed block intersecting the window is applied in full.

        Args:
            path: File path, used for grammar selection and caching
            text: File content
            window: Inclusive 1-based line range (optional)

        Returns:
            Redacted content with the same number of lines

        Raises:
            ValueError: If the window starts before line 1 or ends before it starts
        """
        parsed = self.cache.get(path, text)
        line_window = coerce_window(window, len(parsed.lines))

        if parsed.has_errors:
            logger.debug("Syntax errors in source, redacting recovered tree", extra={"file_path": str(path)})

        candidates = select_candidates(parsed)
        if not candidates:
            return text

        for candidate in candidates:
            self.redaction_counts[candidate.kind.value] += 1

        plan = plan_edits(
            parsed,
            candidates,
            line_marker=self.config.line_marker,
            inline_marker=self.config.inline_marker,
        )
        lines = apply_edits(parsed.lines, plan, line_window, line_marker=self.config.line_marker)
        return "\n".join(lines)

    def redact_output(self, path: Path | str, wrapped: str) -> str | None:
        """Redact a windowed read-tool output; see `reconciler.redact_output`."""
        from .reconciler import redact_output

        return redact_output(path, wrapped, redactor=self)

    def get_stats(self) -> dict[str, int]:
        """Get selection statistics per candidate kind."""
        return dict(sorted(self.redaction_counts.items(), key=lambda x: -x[1]))

    def reset_stats(self) -> None:
        """Reset selection statistics."""
        self.redaction_counts.clear()


def create_redactor(
    config: BlackboxConfig | None = None,
    cache: TreeCache | None = None,
) -> Redactor:
    """Factory function to create a redactor instance."""
    return Redactor(config=config, cache=cache)


def redact_file(
    path: Path | str,
    text: str,
    window: WindowLike | None = None,
    *,
    cache: TreeCache | None = None,
    config: BlackboxConfig | None = None,
) -> str:
    """
    Redact a file's text in one call.

    Pass a shared `cache` to reuse parsed trees across calls.
    """
    return Redactor(config=config, cache=cache).redact_file(path, text, window)
