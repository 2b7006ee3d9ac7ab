"""
Logging switches for kicad-sexp.

All modules log through children of the ``kicad_sexp`` logger, which is
silent by default. Enable it to see skipped fields, overwritten fields and
lex failures while decoding.
"""

import logging

_logger = logging.getLogger("kicad_sexp")
_logger.addHandler(logging.NullHandler())  # Default: no output


def enable_verbose(level: str = "DEBUG", format: str = None) -> None:
    """Enable console logging for the codec.

    Args:
        level: Logging level - "DEBUG", "INFO", "WARNING", "ERROR"
        format: Optional custom format string

    Example:
        enable_verbose()
        decode_document(data, "kicad_pcb", Board)  # logs skipped fields
        disable_verbose()
    """
    _logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    for handler in _logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            _logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(getattr(logging, level.upper()))

    if format is None:
        format = "[%(levelname)s] %(name)s: %(message)s"

    handler.setFormatter(logging.Formatter(format))
    _logger.addHandler(handler)


def disable_verbose() -> None:
    """Disable console logging."""
    _logger.setLevel(logging.WARNING)
    for handler in _logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            _logger.removeHandler(handler)
