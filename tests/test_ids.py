import pytest

from openapi_docs_gen.errors import InvalidIdError
from openapi_docs_gen.parser.base import Info, Operation
from openapi_docs_gen.parser.ids import IdResolver, require_id, slugify
from openapi_docs_gen.parser.records import ApiRecord, InfoRecord, TagRecord


class TestSlugify:
    def test_lowercases_and_hyphenates(self):
        assert slugify("Get Pet") == "get-pet"

    def test_collapses_non_alphanumeric_runs(self):
        assert slugify("  List -- all / pets!  ") == "list-all-pets"

    def test_splits_camel_case(self):
        assert slugify("showPetById") == "show-pet-by-id"
        assert slugify("getHTTPStatus") == "get-http-status"

    def test_empty(self):
        assert slugify("") == ""
        assert slugify(None) == ""
        assert slugify("!!!") == ""


class TestIdResolver:
    def test_second_duplicate_gets_suffix(self):
        resolver = IdResolver()
        assert resolver.resolve("Get Pet") == "get-pet"
        assert resolver.resolve("Get Pet") == "get-pet-2"
        assert resolver.resolve("get pet") == "get-pet-3"

    def test_prefers_first_candidate(self):
        resolver = IdResolver()
        assert resolver.resolve("List pets", "listPets") == "list-pets"

    def test_falls_back_to_operation_id(self):
        resolver = IdResolver()
        assert resolver.resolve("", "listPets") == "list-pets"
        assert resolver.resolve(None, "listPets") == "list-pets-2"

    def test_suffix_skips_taken_slug(self):
        resolver = IdResolver()
        assert resolver.resolve("pets 2") == "pets-2"
        assert resolver.resolve("pets") == "pets"
        assert resolver.resolve("pets") == "pets-3"

    def test_slug_equal_to_handed_out_suffix(self):
        resolver = IdResolver()
        assert resolver.resolve("Get Pet") == "get-pet"
        assert resolver.resolve("Get Pet") == "get-pet-2"
        assert resolver.resolve("Get Pet 2") == "get-pet-2-2"
        assert resolver.resolve("Get Pet") == "get-pet-3"

    def test_empty_is_not_registered(self):
        resolver = IdResolver()
        assert resolver.resolve(None, "") == ""
        assert resolver.resolve("", None) == ""


def _api(record_id: str) -> ApiRecord:
    return ApiRecord(
        id=record_id,
        title="",
        operation=Operation(method="get", path="/anonymous"),
        info_id="petstore",
        sort_key="get /anonymous",
    )


class TestRequireId:
    def test_returns_id(self):
        assert require_id(_api("list-pets")) == "list-pets"

    def test_empty_api_id_names_operation(self):
        with pytest.raises(InvalidIdError, match="GET /anonymous must have summary or operationId"):
            require_id(_api(""))

    def test_empty_info_id(self):
        with pytest.raises(InvalidIdError, match="info.title"):
            require_id(InfoRecord(id="", title="", info=Info()))

    def test_empty_tag_id(self):
        with pytest.raises(InvalidIdError, match='Tag "!!!"'):
            require_id(TagRecord(id="", title="!!!", name="!!!"))
