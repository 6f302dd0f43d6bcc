"""Record identifier resolution.

Turns human text into URL/filename-safe slugs and keeps them unique
within one generation run.
"""

import re

from openapi_docs_gen.errors import InvalidIdError
from openapi_docs_gen.parser.records import ApiRecord, InfoRecord, TagRecord

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str | None) -> str:
    """Lowercase slug: camelCase split, non-alphanumeric runs become one hyphen."""
    if not text:
        return ""
    spaced = _CAMEL_BOUNDARY.sub("-", text)
    return _NON_ALNUM.sub("-", spaced.lower()).strip("-")


class IdResolver:
    """Hands out unique slugs in request order.

    The first record to claim a slug gets it as-is; later ones get ``-2``,
    ``-3``, ... appended. Empty slugs are returned unchanged and never
    registered, so they surface as ``InvalidIdError`` at emit time.
    """

    def __init__(self):
        self._used: set[str] = set()
        self._counts: dict[str, int] = {}

    def resolve(self, *candidates: str | None) -> str:
        """Slug the first non-empty candidate and de-duplicate it."""
        base = ""
        for text in candidates:
            base = slugify(text)
            if base:
                break
        if not base:
            return ""

        if base not in self._used:
            self._used.add(base)
            self._counts[base] = 1
            return base

        count = self._counts.get(base, 1)
        while True:
            count += 1
            candidate = f"{base}-{count}"
            if candidate not in self._used:
                break
        self._counts[base] = count
        self._counts[candidate] = 1
        self._used.add(candidate)
        return candidate


def require_id(record: ApiRecord | InfoRecord | TagRecord) -> str:
    """Return the record id, or raise InvalidIdError if it is empty."""
    if record.id:
        return record.id
    match record:
        case ApiRecord(operation=op):
            raise InvalidIdError(
                f"Operation {op.method.upper()} {op.path}",
                "must have summary or operationId defined",
            )
        case InfoRecord():
            raise InvalidIdError("Info page", "must have info.title defined")
        case TagRecord(name=name):
            raise InvalidIdError(f'Tag "{name}"')
    raise InvalidIdError(repr(record))
