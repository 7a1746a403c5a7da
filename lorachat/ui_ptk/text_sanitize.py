# lorachat/ui_ptk/text_sanitize.py
import re

ANSI_ESCAPE_PATTERN = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')

def sanitize_text(text: str, single_line: bool = False) -> str:
    """Strip terminal escapes and control characters from peer-supplied text."""
    if not isinstance(text, str):
        return ""
    sanitized = ANSI_ESCAPE_PATTERN.sub('', text)
    sanitized = CONTROL_CHARS_PATTERN.sub('', sanitized)
    sanitized = sanitized.replace('\r', '')
    if single_line:
        sanitized = sanitized.replace('\n', ' ')
    return sanitized

def shorten(text: str, width: int = 15) -> str:
    if len(text) > width:
        return text[:width - 3] + "..."
    return text
