"""Environment configuration for unfold-notes.

Reads converter defaults and logging level from environment variables.
"""

import logging
import os

from unfold_notes.models import ConverterOptions, LinkStyle

PRESERVE_LINE_BREAKS_ENV_VAR = "UNFOLD_NOTES_PRESERVE_LINE_BREAKS"
LINK_STYLE_ENV_VAR = "UNFOLD_NOTES_LINK_STYLE"
LOG_LEVEL_ENV_VAR = "UNFOLD_NOTES_LOG_LEVEL"
PREVIEW_INTERVAL_ENV_VAR = "UNFOLD_NOTES_PREVIEW_INTERVAL_MS"

DEFAULT_PREVIEW_INTERVAL_MS = 50


def get_preserve_line_breaks() -> bool:
    """Get line-break preservation from UNFOLD_NOTES_PRESERVE_LINE_BREAKS.

    Default: True. Set to "false" to render ``<br>`` as a space.
    """
    return os.environ.get(PRESERVE_LINE_BREAKS_ENV_VAR, "true").lower() != "false"


def get_link_style() -> LinkStyle:
    """Get link style from UNFOLD_NOTES_LINK_STYLE.

    Unknown values fall back to inline links.
    """
    value = os.environ.get(LINK_STYLE_ENV_VAR, LinkStyle.INLINE.value).strip().lower()
    try:
        return LinkStyle(value)
    except ValueError:
        return LinkStyle.INLINE


def get_converter_options() -> ConverterOptions:
    """Build ConverterOptions from the environment."""
    return ConverterOptions(
        preserve_line_breaks=get_preserve_line_breaks(),
        link_style=get_link_style(),
    )


def get_log_level() -> int:
    """Get the logging level from UNFOLD_NOTES_LOG_LEVEL (default INFO)."""
    name = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_preview_interval() -> float:
    """Get the streaming preview throttle interval in seconds."""
    raw = os.environ.get(PREVIEW_INTERVAL_ENV_VAR, str(DEFAULT_PREVIEW_INTERVAL_MS))
    try:
        millis = int(raw)
    except ValueError:
        millis = DEFAULT_PREVIEW_INTERVAL_MS
    return max(millis, 0) / 1000
