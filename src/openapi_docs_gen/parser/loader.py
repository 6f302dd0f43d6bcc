"""Spec loader — reads OpenAPI documents from a file, a directory or a URL.

Documents sharing a grouping key (``x-api-group`` or ``info.title``) are
folded into one logical document with last-write-wins semantics.
"""

import json
import logging
import re
from functools import reduce
from pathlib import Path

import requests
import yaml
from pydantic import ValidationError

from openapi_docs_gen.errors import LoadError
from openapi_docs_gen.parser.base import Info, OpenApiDocument, TagDef, TagGroup

logger = logging.getLogger(__name__)

SPEC_EXTENSIONS = (".json", ".yaml", ".yml")

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_url(location: str) -> bool:
    return bool(_URL_RE.match(location))


def load_documents(location: str | Path, timeout: float | None = None) -> list[OpenApiDocument]:
    """Load every document at ``location`` and merge them per grouping key.

    Raises LoadError if anything cannot be read, fetched or parsed.
    """
    location = str(location)
    if is_url(location):
        return [fetch_document(location, timeout=timeout)]

    path = Path(location)
    if not path.exists():
        raise LoadError(location, "no such file or directory")
    if path.is_dir():
        return merge_documents(read_directory(path))
    return [read_document(path)]


def fetch_document(url: str, timeout: float | None = None) -> OpenApiDocument:
    """Fetch and parse a remote spec."""
    logger.debug("fetching %s", url)
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise LoadError(url, str(e)) from e

    data = _parse_text(response.text, url, as_json=False)
    if not _looks_like_spec(data):
        raise LoadError(url, "not an OpenAPI document (missing 'openapi' or 'swagger' key)")
    return build_document(data, url)


def read_document(file_path: Path) -> OpenApiDocument:
    """Read and parse a single spec file."""
    data = _read_file(file_path)
    if not _looks_like_spec(data):
        raise LoadError(str(file_path), "not an OpenAPI document (missing 'openapi' or 'swagger' key)")
    return build_document(data, str(file_path))


def read_directory(directory: Path) -> list[OpenApiDocument]:
    """Read every spec file under ``directory`` in sorted path order.

    Files starting with ``_`` are partials and are ignored; parsed files
    that are not OpenAPI documents are skipped with a warning.
    """
    files = sorted(
        p for p in directory.rglob("*")
        if p.is_file() and p.suffix.lower() in SPEC_EXTENSIONS and not p.name.startswith("_")
    )

    documents = []
    for file_path in files:
        data = _read_file(file_path)
        if not _looks_like_spec(data):
            logger.warning("skipping %s: not an OpenAPI document", file_path)
            continue
        documents.append(build_document(data, str(file_path)))

    if not documents:
        raise LoadError(str(directory), "no OpenAPI documents found")
    return documents


def build_document(data: dict, source: str) -> OpenApiDocument:
    """Convert a raw parsed mapping into an OpenApiDocument."""
    paths = data.get("paths") or {}
    if not isinstance(paths, dict):
        raise LoadError(source, "'paths' must be a mapping")

    try:
        info = data.get("info") or {}
        title = str(info.get("title", ""))
        return OpenApiDocument(
            source=source,
            info=Info(
                title=title,
                description=str(info.get("description", "")),
                version=str(info.get("version", "")),
            ),
            paths={path: entry for path, entry in paths.items() if isinstance(entry, dict)},
            tags=[
                TagDef(name=str(t["name"]), description=str(t.get("description", "")))
                for t in data.get("tags") or []
                if isinstance(t, dict) and "name" in t
            ],
            components=data.get("components") or {},
            tag_groups=[
                TagGroup(name=str(g["name"]), tags=[str(t) for t in g.get("tags", [])])
                for g in data.get("x-tagGroups") or []
                if isinstance(g, dict) and "name" in g
            ],
            external_docs_url=(data.get("externalDocs") or {}).get("url"),
            group_key=str(data.get("x-api-group") or title),
        )
    except (ValidationError, AttributeError, TypeError) as e:
        raise LoadError(source, f"malformed document: {e}") from e


# -- merging ------------------------------------------------------------------


def merge_documents(documents: list[OpenApiDocument]) -> list[OpenApiDocument]:
    """Fold documents sharing a grouping key into one document per key.

    Groups keep the order in which their key first appears; within a group
    later documents win on every colliding key.
    """
    groups: dict[str, list[OpenApiDocument]] = {}
    for doc in documents:
        groups.setdefault(doc.group_key, []).append(doc)

    merged = []
    for key, docs in groups.items():
        if len(docs) > 1:
            logger.debug("merging %d documents into %r", len(docs), key)
        merged.append(reduce(merge_two, docs))
    return merged


def merge_two(base: OpenApiDocument, other: OpenApiDocument) -> OpenApiDocument:
    """Return a new document with ``other`` laid over ``base``."""
    paths = {path: dict(entry) for path, entry in base.paths.items()}
    for path, entry in other.paths.items():
        paths.setdefault(path, {}).update(entry)

    components = dict(base.components)
    for section, values in other.components.items():
        if isinstance(values, dict) and isinstance(components.get(section), dict):
            components[section] = {**components[section], **values}
        else:
            components[section] = values

    tags = {t.name: t for t in base.tags}
    for tag in other.tags:
        if tag.name in tags and not tag.description:
            continue
        tags[tag.name] = tag

    groups = {g.name: g for g in base.tag_groups}
    groups.update({g.name: g for g in other.tag_groups})

    info = Info(
        title=other.info.title or base.info.title,
        description=other.info.description or base.info.description,
        version=other.info.version or base.info.version,
    )

    return OpenApiDocument(
        source=other.source,
        info=info,
        paths=paths,
        tags=list(tags.values()),
        components=components,
        tag_groups=list(groups.values()),
        external_docs_url=other.external_docs_url or base.external_docs_url,
        group_key=base.group_key,
    )


# -- parsing helpers ----------------------------------------------------------


def _read_file(file_path: Path) -> dict:
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise LoadError(str(file_path), str(e)) from e
    return _parse_text(text, str(file_path), as_json=file_path.suffix.lower() == ".json")


def _parse_text(text: str, source: str, as_json: bool) -> dict:
    try:
        data = json.loads(text) if as_json else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise LoadError(source, f"cannot parse document: {e}") from e

    if not isinstance(data, dict):
        raise LoadError(source, "document root must be a mapping")
    return data


def _looks_like_spec(data: dict) -> bool:
    return "openapi" in data or "swagger" in data
