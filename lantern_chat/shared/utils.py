"""Shared utility functions."""
import html


def escape_html(text: str) -> str:
    """Escape ``&``, ``<`` and ``>`` so user text can not inject markup."""
    return html.escape(text, quote=False)


def is_valid_nickname(nickname: str) -> bool:
    """Return True if nickname is non-empty and contains no whitespace."""
    if not nickname:
        return False
    return not any(ch.isspace() for ch in nickname)
