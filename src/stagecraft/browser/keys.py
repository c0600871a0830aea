"""Key-name translation from computer-use models to driver key names."""

from __future__ import annotations

_KEY_MAP = {
    "ENTER": "Enter",
    "RETURN": "Enter",
    "ESC": "Escape",
    "ESCAPE": "Escape",
    "TAB": "Tab",
    "SPACE": "Space",
    "BACKSPACE": "Backspace",
    "DELETE": "Delete",
    "DEL": "Delete",
    "INSERT": "Insert",
    "HOME": "Home",
    "END": "End",
    "PAGEUP": "PageUp",
    "PAGE_UP": "PageUp",
    "PAGEDOWN": "PageDown",
    "PAGE_DOWN": "PageDown",
    "UP": "ArrowUp",
    "ARROWUP": "ArrowUp",
    "DOWN": "ArrowDown",
    "ARROWDOWN": "ArrowDown",
    "LEFT": "ArrowLeft",
    "ARROWLEFT": "ArrowLeft",
    "RIGHT": "ArrowRight",
    "ARROWRIGHT": "ArrowRight",
    "SHIFT": "Shift",
    "CTRL": "Control",
    "CONTROL": "Control",
    "ALT": "Alt",
    "OPTION": "Alt",
    "META": "Meta",
    "CMD": "Meta",
    "COMMAND": "Meta",
    "SUPER": "Meta",
    "WIN": "Meta",
    "CAPSLOCK": "CapsLock",
}
_KEY_MAP.update({f"F{n}": f"F{n}" for n in range(1, 13)})


def map_key_to_playwright(key: str) -> str:
    """Translate a model key name ("CTRL", "return", "arrowup") to a driver key.

    Single characters pass through unchanged; unknown names are returned as
    given so the driver can reject them.
    """
    stripped = key.strip()
    if len(stripped) <= 1:
        return stripped or key
    return _KEY_MAP.get(stripped.upper().replace("-", "_"), stripped)
