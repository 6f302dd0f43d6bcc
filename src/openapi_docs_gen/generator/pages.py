"""Page emitter — renders normalized records into MDX files."""

import json
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, TemplateError

from openapi_docs_gen.config import join_doc_path
from openapi_docs_gen.errors import InvalidIdError, LoadError, WriteError
from openapi_docs_gen.generator.writer import WriteOutcome, WriteStatus, write_if_absent
from openapi_docs_gen.parser.ids import require_id
from openapi_docs_gen.parser.records import ApiRecord, InfoRecord, NormalizedRecord, TagRecord

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


def _yaml_str(value) -> str:
    """Quote a scalar for front matter; JSON strings are valid YAML."""
    return json.dumps("" if value is None else str(value), ensure_ascii=False)


def _pretty_json(value) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _table_cell(value) -> str:
    return " ".join(str(value or "").split()).replace("|", "\\|")


def create_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        autoescape=False,
    )
    env.filters["yaml_str"] = _yaml_str
    env.filters["pretty_json"] = _pretty_json
    env.filters["table_cell"] = _table_cell
    return env


class PageEmitter:
    """Renders and writes the ``<id>.<type>.mdx`` pages of one unit.

    ``template`` overrides the api page template, and the info page
    template unless info pages act as category landing pages.
    """

    def __init__(
        self,
        output_dir: Path,
        template: Path | None = None,
        category_link_source: str | None = None,
        info_base_path: str = "",
        download_url: str | None = None,
    ):
        self.output_dir = output_dir
        self.category_link_source = category_link_source
        self.info_base_path = info_base_path
        self.download_url = download_url
        self.env = create_environment()
        self.custom_template = None
        if template is not None:
            try:
                self.custom_template = self.env.from_string(template.read_text(encoding="utf-8"))
            except (OSError, TemplateError) as e:
                raise LoadError(str(template), f"cannot load template: {e}") from e

    def emit(self, records: list[NormalizedRecord]) -> list[WriteOutcome]:
        """Write one file per record; a failing record never stops the rest."""
        outcomes = []
        for record in records:
            path = self.output_dir / f"{record.id}.{record.type}.mdx"
            try:
                require_id(record)
                content = self.render(record)
            except InvalidIdError as e:
                outcomes.append(WriteOutcome(path, WriteStatus.FAILED, e))
                continue
            except TemplateError as e:
                outcomes.append(WriteOutcome(path, WriteStatus.FAILED, WriteError(str(path), str(e), action="render")))
                continue
            outcomes.append(write_if_absent(path, content))
        return outcomes

    def render(self, record: NormalizedRecord) -> str:
        match record:
            case ApiRecord():
                context = self._api_context(record)
                page = self.custom_template or self.env.get_template("api.mdx.j2")
                body = "markdown/api.md.j2"
            case InfoRecord():
                context = self._info_context(record)
                page = self.env.get_template("info.mdx.j2")
                if self.custom_template and not context["card_list"]:
                    page = self.custom_template
                body = "markdown/info.md.j2"
            case TagRecord():
                context = self._tag_context(record)
                page = self.env.get_template("tag.mdx.j2")
                body = "markdown/tag.md.j2"
            case _:
                raise TypeError(f"unknown record type: {record!r}")

        context["markdown"] = self.env.get_template(body).render(context).rstrip()
        return page.render(context)

    # -- contexts -------------------------------------------------------------

    def _base_context(self, record: NormalizedRecord) -> dict:
        return {
            "type": record.type,
            "id": record.id,
            "title": record.title,
            "description": record.description,
        }

    def _api_context(self, record: ApiRecord) -> dict:
        op = record.operation
        api = {**op.raw, "method": op.method, "path": op.path}
        return {
            **self._base_context(record),
            "api": api,
            "json": json.dumps(api, ensure_ascii=False, default=str),
            "method": op.method,
            "path": op.path,
            "deprecated": op.deprecated,
            "parameters": op.parameters,
            "request_body": op.request_body,
            "content_type": op.content_type,
            "responses": op.responses,
            "info_path": join_doc_path(self.info_base_path, record.info_id) if record.info_id else None,
        }

    def _info_context(self, record: InfoRecord) -> dict:
        return {
            **self._base_context(record),
            "version": record.info.version,
            "download_url": self.download_url,
            "tags": record.tags,
            "card_list": self.category_link_source == "info",
        }

    def _tag_context(self, record: TagRecord) -> dict:
        return {
            **self._base_context(record),
            "name": record.name,
            "api_ids": record.api_ids,
        }
