"""Secure logging configuration for unfold-notes.

Provides logging setup with API key masking. The API layer serves callers
authenticated by API key, so key and bearer token values are masked in all
log output.
"""

import logging
import re


class SecretMaskingFilter(logging.Filter):
    """Logging filter that masks API keys and bearer tokens.

    Secret values are replaced with [MASKED] to prevent credential
    leakage in logs.
    """

    SECRET_PATTERNS = [
        # Match api_key=VALUE, api-key: VALUE, apiKey=VALUE
        re.compile(r"(api[_-]?key[=:]\s*)([^\s;,}\"']+)", re.IGNORECASE),
        # Match dict format {"api_key": "value"}
        re.compile(r'(["\']api[_-]?key["\']\s*:\s*["\'])([^"\']+)(["\'])', re.IGNORECASE),
        # Match Authorization header format
        re.compile(r"(Authorization:\s*Bearer\s+)(\S+)", re.IGNORECASE),
        # Match issued key literals (unf_ prefix)
        re.compile(r"(\b)(unf_[A-Za-z0-9]{16,})"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter and mask secret values in log records.

        Args:
            record: Log record to process

        Returns:
            Always True (record is always passed through, just modified)
        """
        if record.msg:
            record.msg = self._mask_secrets(str(record.msg))
        if record.args and isinstance(record.args, tuple):
            new_args: list[object] = []
            for arg in record.args:
                if isinstance(arg, str):
                    new_args.append(self._mask_secrets(arg))
                else:
                    new_args.append(arg)
            record.args = tuple(new_args)
        return True

    def _mask_secrets(self, text: str) -> str:
        """Mask all secret values in text.

        Args:
            text: Text potentially containing secrets

        Returns:
            Text with secret values replaced by [MASKED]
        """
        result = text
        for pattern in self.SECRET_PATTERNS:

            def mask_match(m: re.Match[str]) -> str:
                suffix = m.group(3) if len(m.groups()) > 2 else ""
                return m.group(1) + "[MASKED]" + suffix

            result = pattern.sub(mask_match, result)
        return result


def setup_logging(level: int = logging.INFO, name: str | None = None) -> logging.Logger:
    """Set up logging with secret masking.

    Args:
        level: Logging level (default: INFO)
        name: Logger name (default: "unfold_notes")

    Returns:
        Configured logger instance
    """
    logger_name = name or "unfold_notes"
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    handler.addFilter(SecretMaskingFilter())

    logger.addHandler(handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger under the unfold_notes namespace.

    Args:
        name: Logger name suffix (e.g., "export" for "unfold_notes.export")

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"unfold_notes.{name}")
    return logging.getLogger("unfold_notes")
