"""
Módulo de validação e normalização de inputs.
"""
import re
from datetime import datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from .exceptions import ValidationError

ANO_MES_RE = re.compile(r'^\d{4}-(0[1-9]|1[0-2])$')
_CONTROL_CHARS_RE = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')


def sanitize_string(value: Any, max_length: int = None, min_length: int = 0, allow_empty: bool = False,
                    campo: str = 'Valor') -> str:
    if value is None:
        value = ''
    if not isinstance(value, str):
        raise ValidationError(f"{campo} deve ser um texto")
    value = _CONTROL_CHARS_RE.sub('', value.strip())
    if allow_empty and len(value) == 0:
        return value
    if len(value) < max(min_length, 1):
        raise ValidationError(f"{campo} é obrigatório.")
    if max_length and len(value) > max_length:
        raise ValidationError(f"{campo} excede o limite de {max_length} caracteres.")
    return value


def optional_string(value: Any, max_length: int = None, campo: str = 'Valor') -> Optional[str]:
    if value is None:
        return None
    value = sanitize_string(value, max_length=max_length, allow_empty=True, campo=campo)
    return value or None


def validate_integer(value: Any, min_value: int = None, max_value: int = None, allow_none: bool = False,
                     campo: str = 'Valor') -> Optional[int]:
    if value is None and allow_none:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{campo} deve ser um número inteiro válido")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError(f"{campo} deve ser um número inteiro válido")
    try:
        int_value = int(value)
    except (ValueError, TypeError):
        raise ValidationError(f"{campo} deve ser um número inteiro válido")
    if min_value is not None and int_value < min_value:
        raise ValidationError(f"{campo} deve ser no mínimo {min_value}")
    if max_value is not None and int_value > max_value:
        raise ValidationError(f"{campo} deve ser no máximo {max_value}")
    return int_value


def validate_float(value: Any, min_value: float = None, allow_none: bool = False, campo: str = 'Valor') -> Optional[float]:
    if value is None and allow_none:
        return None
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(f"{campo} deve ser um número válido")
    if min_value is not None and float_value < min_value:
        raise ValidationError(f"{campo} deve ser no mínimo {min_value}")
    return float_value


def validate_boolean(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    return str(value).strip().lower() in ('true', '1', 'yes', 'sim', 'on')


def validate_ano_mes(value: Any, campo: str = 'Data') -> str:
    """Valida um ano-mês no formato YYYY-MM."""
    if not isinstance(value, str) or not ANO_MES_RE.match(value.strip()):
        raise ValidationError(f"{campo} deve estar no formato AAAA-MM.")
    return value.strip()


def validate_prazo(value: Any, tz_local: str = 'America/Sao_Paulo') -> datetime:
    """
    Converte o prazo final em datetime UTC com timezone.

    Aceita ISO 8601 (com ou sem offset) ou datetime. Valores sem timezone são
    interpretados no fuso local da organização.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError("Prazo final é obrigatório.")
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        texto = value.strip().replace('Z', '+00:00')
        try:
            dt = datetime.fromisoformat(texto)
        except ValueError:
            raise ValidationError("Prazo final inválido. Use o formato AAAA-MM-DD HH:MM.")
    else:
        raise ValidationError("Prazo final inválido. Use o formato AAAA-MM-DD HH:MM.")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(tz_local))
    return dt.astimezone(timezone.utc)


def to_int_or_none(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
