"""
Parameter validators
====================

A validator turns one raw query-string value into its typed value or raises
``InvalidValue``. ``ParamValidator`` is a registry of them keyed by parameter
name; the search and release endpoints each get their own set, sharing the
``limit`` and ``offset`` validators.
"""

import logging
import re
from typing import Any, Callable, Dict, Optional

from app.core.errors import ValidationError
from app.query.params import Date, InvalidValue, Reason, ReleaseSort, ReleaseType, SearchSort
from app.query.search import AGGREGATION_FIELDS, SUB_QUERIES

MAX_LIMIT = 1000

_INTEGER = re.compile(r"-?[0-9]+")

Validator = Callable[[str], Any]

log = logging.getLogger("uvicorn.error")


def _to_int(value: str) -> int:
    s = (value or "").strip()
    # int() also takes "+5", "1_000" and non-ASCII digits
    if not _INTEGER.fullmatch(s):
        raise InvalidValue(Reason.NON_NUMERIC, f"{value!r} contains non numeric characters")
    return int(s)


def validate_limit(value: str) -> int:
    n = _to_int(value)
    if n < 0:
        raise InvalidValue(Reason.NEGATIVE, f"{n} is negative")
    if n > MAX_LIMIT:
        raise InvalidValue(Reason.TOO_HIGH, f"{n} is greater than {MAX_LIMIT}")
    return n


def validate_offset(value: str) -> int:
    n = _to_int(value)
    if n < 0:
        raise InvalidValue(Reason.NEGATIVE, f"{n} is negative")
    return n


def _one_of(allowed):
    def validate(value: str) -> str:
        if value not in allowed:
            raise InvalidValue(Reason.UNKNOWN, f"{value!r} is not one of {', '.join(allowed)}")
        return value

    return validate


class ParamValidator(Dict[str, Validator]):
    def validate(self, name: str, value: str, param: Optional[str] = None) -> Any:
        """
        Run the validator registered under ``name``.

        ``param`` is the name reported to the client when it differs from the
        validator name (e.g. ``fromDate`` is checked by the ``date`` validator).
        """
        reported = param or name
        validator = self.get(name)
        if validator is None:
            raise KeyError(f"cannot validate: no validator for {name}")
        try:
            return validator(value)
        except InvalidValue as exc:
            log.warning("invalid %s parameter %r: %s", reported, value, exc)
            raise ValidationError(reported, exc.reason.value, exc.detail) from exc


def search_validators() -> ParamValidator:
    return ParamValidator(
        limit=validate_limit,
        offset=validate_offset,
        sort=SearchSort.parse,
        date=Date.parse,
        query=_one_of(SUB_QUERIES),
        aggField=_one_of(AGGREGATION_FIELDS),
    )


def release_validators() -> ParamValidator:
    return ParamValidator(
        limit=validate_limit,
        offset=validate_offset,
        date=Date.parse,
        sort=ReleaseSort.parse,
        **{"release-type": ReleaseType.parse},
    )
