from datetime import datetime, timezone


def parse_db_datetime(value):
    """
    Normaliza timestamps vindos do banco para datetime UTC com timezone.
    SQLite devolve texto 'YYYY-MM-DD HH:MM:SS' (UTC); PostgreSQL devolve datetime.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_datetime_iso(value):
    dt = parse_db_datetime(value)
    return dt.isoformat() if dt else None
