from __future__ import annotations

import re
from datetime import datetime

from ..errors import StructuralIntegrityError

_DISALLOWED = re.compile(r"[^A-Za-z0-9_]")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

COLUMN_PREFIX = "f_"
TABLE_PREFIX = "job_"


def sanitize_identifier(name: str) -> str:
    return _DISALLOWED.sub("_", str(name)).lower()


def column_name(field: str) -> str:
    # SQL identifiers cannot start with a digit
    sanitized = sanitize_identifier(field)
    if not sanitized or sanitized[0].isdigit():
        sanitized = COLUMN_PREFIX + sanitized
    return sanitized


def table_name_for(job_id: int, created_at: datetime) -> str:
    stamp = created_at.strftime("%Y_%m_%d_%H_%M_%S")
    return sanitize_identifier(f"{TABLE_PREFIX}{int(job_id)}_{stamp}")


def quote_identifier(identifier: str) -> str:
    """Quote an already-sanitized identifier for use in SQL.

    Raises StructuralIntegrityError for anything that did not come out of the
    sanitizers above; callers must never reach this with raw input.
    """
    if not isinstance(identifier, str) or not _IDENTIFIER.match(identifier):
        raise StructuralIntegrityError(f"Refusing unsanitized identifier: {identifier!r}")
    return f'"{identifier}"'
