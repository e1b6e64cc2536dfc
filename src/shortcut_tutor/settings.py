"""User settings stored in the user_settings table."""
from shortcut_tutor.db import connect

DEFAULT_SESSION_SIZE = 15


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    with connect(db_path) as conn:
        row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    with connect(db_path) as conn:
        conn.execute(
            "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
            (key, value, value),
        )
        conn.commit()


def get_session_size(db_path: str) -> int:
    return int(get_setting(db_path, "session_size", str(DEFAULT_SESSION_SIZE)))


def set_session_size(db_path: str, size: int) -> None:
    if size < 1:
        raise ValueError("Session size must be at least 1")
    set_setting(db_path, "session_size", str(size))


def get_focus_on_difficult(db_path: str) -> bool:
    return get_setting(db_path, "focus_on_difficult", "0") == "1"


def set_focus_on_difficult(db_path: str, enabled: bool) -> None:
    set_setting(db_path, "focus_on_difficult", "1" if enabled else "0")
