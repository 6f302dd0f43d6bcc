"""Normalizer — flattens OpenAPI documents into page records.

Each document yields one info record, one api record per path+method
(path declaration order, then fixed method precedence) and one tag record
per tag that is declared or referenced.
"""

from openapi_docs_gen.parser.base import OpenApiDocument, Operation, Param
from openapi_docs_gen.parser.ids import IdResolver
from openapi_docs_gen.parser.records import ApiRecord, InfoRecord, NormalizedRecord, TagRecord

METHOD_ORDER = ("get", "post", "put", "delete", "patch", "options", "head", "trace")

# Path item keys that are not operations.
PATH_ITEM_FIELDS = {"parameters", "summary", "description", "servers", "$ref"}


def normalize_documents(documents: list[OpenApiDocument]) -> tuple[list[NormalizedRecord], list[str]]:
    """Return (records, tag names) for all documents of one generation run."""
    resolver = IdResolver()
    records: list[NormalizedRecord] = []
    tag_names: list[str] = []

    for doc in documents:
        doc_records, doc_tags = normalize_document(doc, resolver)
        records.extend(doc_records)
        for name in doc_tags:
            if name not in tag_names:
                tag_names.append(name)

    return records, tag_names


def normalize_document(doc: OpenApiDocument, resolver: IdResolver) -> tuple[list[NormalizedRecord], list[str]]:
    """Normalize a single document, claiming ids from ``resolver``."""
    info_id = resolver.resolve(doc.info.title)
    operations = list(iter_operations(doc))
    tag_order = _tag_order(doc, operations)

    info_record = InfoRecord(
        id=info_id,
        title=doc.info.title,
        description=doc.info.description,
        info=doc.info,
        tags=tag_order,
        tag_groups=doc.tag_groups,
        external_docs_url=doc.external_docs_url,
    )

    api_records = []
    for op in operations:
        api_records.append(
            ApiRecord(
                id=resolver.resolve(op.summary, op.operation_id),
                title=op.summary or op.operation_id,
                description=op.description,
                operation=op,
                info_id=info_id,
                sort_key=f"{op.method} {op.path}",
            )
        )

    declared = {t.name: t.description for t in doc.tags}
    tag_records = []
    for name in tag_order:
        tag_records.append(
            TagRecord(
                id=resolver.resolve(name),
                title=name,
                description=declared.get(name, ""),
                name=name,
                api_ids=[r.id for r in api_records if name in r.operation.tags and r.id],
            )
        )

    return [info_record, *api_records, *tag_records], tag_order


def iter_operations(doc: OpenApiDocument):
    """Yield Operations in path order, then method precedence order."""
    for path, path_item in doc.paths.items():
        if not isinstance(path_item, dict):
            continue
        shared_params = path_item.get("parameters") or []
        for method in _ordered_methods(path_item):
            yield _build_operation(doc, path, method, path_item[method], shared_params)


def _ordered_methods(path_item: dict) -> list[str]:
    methods = [
        key for key, value in path_item.items()
        if key not in PATH_ITEM_FIELDS and not key.startswith("x-") and isinstance(value, dict)
    ]
    known = [m for m in METHOD_ORDER if m in methods]
    return known + [m for m in methods if m not in METHOD_ORDER]


def _build_operation(doc: OpenApiDocument, path: str, method: str, operation: dict, shared_params: list) -> Operation:
    params = _merge_parameters(
        [resolve_ref(doc, p) for p in shared_params],
        [resolve_ref(doc, p) for p in operation.get("parameters") or []],
    )
    body = resolve_ref(doc, operation.get("requestBody")) if operation.get("requestBody") else None

    return Operation(
        method=method,
        path=path,
        summary=str(operation.get("summary") or ""),
        description=str(operation.get("description") or ""),
        operation_id=str(operation.get("operationId") or ""),
        tags=[str(t) for t in operation.get("tags") or []],
        parameters=_parse_parameters(params),
        request_body=_parse_request_body(body),
        content_type=_detect_content_type(body),
        responses=_parse_responses(operation.get("responses") or {}),
        deprecated=bool(operation.get("deprecated", False)),
        raw=operation,
    )


def _tag_order(doc: OpenApiDocument, operations: list[Operation]) -> list[str]:
    """Declared tags first, then tags only referenced by operations."""
    names = [t.name for t in doc.tags]
    for op in operations:
        for tag in op.tags:
            if tag not in names:
                names.append(tag)
    return names


def resolve_ref(doc: OpenApiDocument, node):
    """Resolve a local ``$ref`` (``#/components/...``), following chained refs.

    Unresolvable or cyclic refs return the last node reached.
    """
    seen: set[str] = set()
    while isinstance(node, dict) and "$ref" in node:
        ref = node["$ref"]
        if not isinstance(ref, str) or not ref.startswith("#/components/") or ref in seen:
            return node
        seen.add(ref)
        target = doc.components
        for part in ref[len("#/components/"):].split("/"):
            if not isinstance(target, dict) or part not in target:
                return node
            target = target[part]
        node = target
    return node


def _merge_parameters(shared: list, own: list) -> list[dict]:
    """Operation parameters override path-level ones with the same name+location."""
    merged: dict[tuple, dict] = {}
    for p in [*shared, *own]:
        if isinstance(p, dict) and "name" in p:
            merged[(p["name"], p.get("in", "query"))] = p
    return list(merged.values())


def _parse_parameters(params: list[dict]) -> list[Param]:
    result = []
    for p in params:
        schema = p.get("schema") or {}
        constraints = {}
        for key in ("minimum", "maximum", "minLength", "maxLength", "pattern", "enum"):
            if key in schema:
                constraints[key] = schema[key]

        result.append(
            Param(
                name=str(p["name"]),
                location=str(p.get("in") or "query"),
                required=bool(p.get("required", False)),
                param_type=_schema_type(schema),
                description=str(p.get("description") or ""),
                constraints=constraints,
            )
        )
    return result


def _schema_type(schema: dict) -> str:
    """``type`` as a string; OpenAPI 3.1 type lists keep their non-null entries."""
    value = schema.get("type") or "string"
    if isinstance(value, list):
        types = [str(t) for t in value if t != "null"]
        return " | ".join(types) or "null"
    return str(value)


def _parse_request_body(body: dict | None) -> dict | None:
    if not body:
        return None
    content = body.get("content") or {}
    for content_type in ("application/json", "multipart/form-data"):
        if content_type in content:
            return (content[content_type] or {}).get("schema")
    # Fallback: return first available schema
    for ct_data in content.values():
        return (ct_data or {}).get("schema")
    return None


def _detect_content_type(body: dict | None) -> str:
    if not body:
        return "application/json"
    content = body.get("content") or {}
    if "application/json" in content or not content:
        return "application/json"
    return next(iter(content))


def _parse_responses(responses: dict) -> dict:
    result = {}
    for status_code, resp in responses.items():
        description = str(resp.get("description") or "") if isinstance(resp, dict) else ""
        result[str(status_code)] = {"description": description}
    return result
