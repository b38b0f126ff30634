"""Preview pipeline: bounded reads fitted to the preview pane."""

from .bat import bat_arguments, run_bat
from .reader import (
    DEFAULT_MAX_PREVIEW_BYTES,
    DEFAULT_PREVIEW_LINES,
    MIN_PREVIEW_LINES,
    PreviewKind,
    PreviewMethod,
    PreviewResult,
    read_preview,
)
from .text import display_width, fit_ansi_to_width, fit_to_width

__all__ = [
    "DEFAULT_MAX_PREVIEW_BYTES",
    "DEFAULT_PREVIEW_LINES",
    "MIN_PREVIEW_LINES",
    "PreviewKind",
    "PreviewMethod",
    "PreviewResult",
    "bat_arguments",
    "display_width",
    "fit_ansi_to_width",
    "fit_to_width",
    "read_preview",
    "run_bat",
]
