"""End-to-end pipeline tests: load, normalize, sidebar, emit, clean."""

import json
import shutil
from pathlib import Path

import pytest

from openapi_docs_gen.config import ApiConfig, SiteConfig, version_unit
from openapi_docs_gen.errors import LoadError
from openapi_docs_gen.generator.docs import DocsGenerator, version_entries
from openapi_docs_gen.generator.writer import WriteStatus

FIXTURES = Path(__file__).parent / "fixtures"

EXPECTED_FILES = {
    "sidebar.js",
    "swagger-petstore.info.mdx",
    "list-all-pets.api.mdx",
    "create-a-pet.api.mdx",
    "info-for-a-specific-pet.api.mdx",
    "delete-a-pet.api.mdx",
    "list-orders.api.mdx",
    "health-check.api.mdx",
    "pets.tag.mdx",
    "store.tag.mdx",
    "billing.tag.mdx",
}


@pytest.fixture
def site(tmp_path):
    shutil.copy(FIXTURES / "petstore.yaml", tmp_path / "petstore.yaml")
    return SiteConfig(
        site_dir=tmp_path,
        presets=[("classic", {"docs": {"path": "docs", "routeBasePath": "/"}})],
    )


def _unit(**overrides) -> ApiConfig:
    data = {"specPath": "petstore.yaml", "outputDir": "docs/petstore", "sidebarOptions": {"groupPathsBy": "tag"}}
    data.update(overrides)
    return ApiConfig.model_validate(data)


def _files(directory: Path) -> dict[str, str]:
    return {p.name: p.read_text(encoding="utf-8") for p in directory.iterdir() if p.is_file()}


class TestGenerate:
    def test_writes_every_page(self, site):
        report = DocsGenerator(site, "classic").generate(_unit())

        out = site.site_dir / "docs" / "petstore"
        assert set(_files(out)) == EXPECTED_FILES
        assert all(o.ok for o in report.outcomes)
        assert report.warnings == []

    def test_second_run_is_a_no_op(self, site):
        unit = _unit()
        DocsGenerator(site, "classic").generate(unit)
        out = site.site_dir / "docs" / "petstore"
        before = _files(out)

        report = DocsGenerator(site, "classic").generate(unit)

        assert _files(out) == before
        assert {o.status for o in report.outcomes} == {WriteStatus.SKIPPED}

    def test_existing_page_is_not_overwritten(self, site):
        out = site.site_dir / "docs" / "petstore"
        out.mkdir(parents=True)
        (out / "list-all-pets.api.mdx").write_text("hand edited")

        DocsGenerator(site, "classic").generate(_unit())

        assert (out / "list-all-pets.api.mdx").read_text() == "hand edited"

    def test_api_page_links_to_info_page(self, site):
        DocsGenerator(site, "classic").generate(_unit())
        page = (site.site_dir / "docs" / "petstore" / "list-all-pets.api.mdx").read_text(encoding="utf-8")
        assert "info_path: petstore/swagger-petstore" in page
        assert "id: list-all-pets" in page

    def test_sidebar_ids_are_prefixed_with_doc_base_path(self, site):
        DocsGenerator(site, "classic").generate(_unit())
        text = (site.site_dir / "docs" / "petstore" / "sidebar.js").read_text(encoding="utf-8")
        tree = json.loads(text[len("module.exports = "):].rstrip().rstrip(";"))

        labels = [item["label"] for item in tree]
        assert labels[0] == "Swagger Petstore"
        assert labels[-1] == "Untagged"
        pets = next(item for item in tree if item.get("label") == "pets")
        assert [doc["id"] for doc in pets["items"]][0] == "petstore/list-all-pets"

    def test_unknown_docs_plugin_falls_back_to_output_dir(self, site):
        generator = DocsGenerator(site, "nope")
        assert generator.docs is None
        assert generator.doc_base_path(_unit()) == "petstore"
        assert generator.info_base_path(_unit()) == "docs/petstore"

    def test_missing_spec_writes_nothing(self, site):
        with pytest.raises(LoadError):
            DocsGenerator(site, "classic").generate(_unit(specPath="missing.yaml"))
        assert not (site.site_dir / "docs").exists()

    def test_unnormalizable_spec_is_a_load_error(self, site):
        (site.site_dir / "bad.yaml").write_text(
            "openapi: 3.0.0\ninfo: {title: Bad, version: '1'}\n"
            "paths:\n  /a:\n    get: {summary: A, tags: 5}\n",
            encoding="utf-8",
        )
        with pytest.raises(LoadError, match="cannot normalize document"):
            DocsGenerator(site, "classic").generate(_unit(specPath="bad.yaml"))
        assert not (site.site_dir / "docs").exists()

    def test_missing_template_writes_nothing(self, site):
        with pytest.raises(LoadError, match="cannot load template"):
            DocsGenerator(site, "classic").generate(_unit(template="missing.j2"))
        assert not (site.site_dir / "docs").exists()

    def test_custom_template(self, site):
        (site.site_dir / "api.j2").write_text("{{ method | upper }} {{ path }}\n", encoding="utf-8")

        DocsGenerator(site, "classic").generate(_unit(template="api.j2"))

        page = site.site_dir / "docs" / "petstore" / "delete-a-pet.api.mdx"
        assert page.read_text(encoding="utf-8") == "DELETE /pets/{petId}\n"

    def test_directory_of_specs_is_merged(self, site):
        specs = site.site_dir / "specs"
        specs.mkdir()
        (specs / "a.yaml").write_text(
            "openapi: 3.0.0\ninfo: {title: Shop, version: '1'}\n"
            "paths:\n  /a:\n    get: {summary: Get A, tags: [a]}\n",
            encoding="utf-8",
        )
        (specs / "b.yaml").write_text(
            "openapi: 3.0.0\ninfo: {title: Shop, version: '2'}\n"
            "paths:\n  /b:\n    get: {summary: Get B, tags: [b]}\n",
            encoding="utf-8",
        )
        (specs / "_draft.yaml").write_text("openapi: 3.0.0\n", encoding="utf-8")

        DocsGenerator(site, "classic").generate(_unit(specPath="specs", outputDir="docs/shop"))

        assert set(_files(site.site_dir / "docs" / "shop")) == {
            "sidebar.js", "shop.info.mdx", "get-a.api.mdx", "get-b.api.mdx", "a.tag.mdx", "b.tag.mdx",
        }


class TestClean:
    def test_clean_removes_exactly_the_generated_files(self, site):
        generator = DocsGenerator(site, "classic")
        unit = _unit()
        generator.generate(unit)
        out = site.site_dir / "docs" / "petstore"
        (out / "intro.md").write_text("mine")
        (out / "nested").mkdir()
        (out / "nested" / "keep.api.mdx").write_text("mine")

        outcomes = generator.clean(unit)

        assert {o.path.name for o in outcomes} == EXPECTED_FILES
        assert {o.status for o in outcomes} == {WriteStatus.DELETED}
        assert sorted(p.name for p in out.iterdir()) == ["intro.md", "nested"]
        assert (out / "nested" / "keep.api.mdx").exists()

    def test_clean_missing_dir(self, site):
        assert DocsGenerator(site).clean(_unit()) == []


class TestVersions:
    def _parent(self) -> ApiConfig:
        return _unit(
            version="2.0",
            label="Latest",
            baseUrl="/petstore",
            versions={
                "1.0": {"specPath": "petstore.yaml", "outputDir": "docs/petstore/1.0", "label": "Legacy", "baseUrl": "/petstore/1.0"},
                "2.0": {"specPath": "petstore.yaml", "outputDir": "docs/petstore/2.0", "label": "Current", "baseUrl": "/petstore/2.0"},
            },
        )

    def test_matching_version_key_overrides_parent_entry_in_place(self):
        entries = [e.model_dump(by_alias=True) for e in version_entries(self._parent())]
        assert entries == [
            {"version": "2.0", "label": "Current", "baseUrl": "/petstore/2.0"},
            {"version": "1.0", "label": "Legacy", "baseUrl": "/petstore/1.0"},
        ]

    def test_entries_without_parent_version(self):
        unit = _unit(versions={"v1": {"specPath": "petstore.yaml", "outputDir": "docs/v1"}})
        entries = version_entries(unit)
        assert [(e.version, e.label, e.base_url) for e in entries] == [("v1", "v1", "")]

    def test_write_and_clean_versions(self, site):
        generator = DocsGenerator(site, "classic")
        parent = self._parent()

        outcomes = generator.write_versions(parent)
        manifest = site.site_dir / "docs" / "petstore" / "versions.json"

        assert outcomes[-1].status is WriteStatus.CREATED
        assert json.loads(manifest.read_text(encoding="utf-8"))[0]["version"] == "2.0"
        assert generator.write_versions(parent)[-1].status is WriteStatus.SKIPPED

        assert [o.status for o in generator.clean_versions(parent)] == [WriteStatus.DELETED]
        assert not manifest.exists()
        assert generator.clean_versions(parent) == []

    def test_version_unit_inherits_sidebar_options(self, site):
        parent = self._parent()
        unit = version_unit(parent, parent.versions["1.0"])

        DocsGenerator(site, "classic").generate(unit)

        out = site.site_dir / "docs" / "petstore" / "1.0"
        assert (out / "sidebar.js").exists()
        assert "petstore/1.0/list-all-pets" in (out / "sidebar.js").read_text(encoding="utf-8")
