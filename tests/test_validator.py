from route_oas.validator import (
    resolve_pointer,
    validate_document,
    validate_path_params,
    validate_refs,
    validate_required_keys,
    validate_responses,
)


def _doc(**overrides):
    doc = {
        "openapi": "3.0.0",
        "info": {"title": "API", "version": "1"},
        "paths": {
            "/users/{id}": {
                "get": {
                    "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}}],
                    "responses": {"200": {"description": "OK", "content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}}}},
                }
            }
        },
        "components": {"schemas": {"User": {"type": "object"}}},
    }
    doc.update(overrides)
    return doc


class TestValidateRequiredKeys:
    def test_valid(self):
        assert validate_required_keys(_doc()) == {}

    def test_missing_paths(self):
        doc = _doc()
        del doc["paths"]
        assert "paths" in validate_required_keys(doc)

    def test_swagger_document(self):
        errors = validate_required_keys({"swagger": "2.0", "info": {"title": "API", "version": "1"}})
        assert list(errors) == ["paths"]

    def test_missing_info_title(self):
        errors = validate_required_keys(_doc(info={"version": "1"}))
        assert "info.title" in errors


class TestValidateRefs:
    def test_resolve_pointer(self):
        doc = _doc()
        assert resolve_pointer(doc, "#/components/schemas/User") == {"type": "object"}
        assert resolve_pointer(doc, "#/components/schemas/Missing") is None
        assert resolve_pointer(doc, "other.yaml#/User") is None

    def test_escaped_pointer(self):
        doc = {"paths": {"/a/b": {"x": 1}}}
        assert resolve_pointer(doc, "#/paths/~1a~1b") == {"x": 1}

    def test_dangling_ref(self):
        doc = _doc(components={"schemas": {}})
        errors = validate_refs(doc)
        assert len(errors) == 1
        [(location, message)] = errors.items()
        assert location.startswith("paths./users/{id}.get.responses.200")
        assert "#/components/schemas/User" in message


class TestValidateOperations:
    def test_missing_responses(self):
        doc = _doc(paths={"/ping": {"get": {"responses": {}}}})
        assert validate_responses(doc) == {"paths./ping.get": "operation has no responses"}

    def test_undeclared_path_param(self):
        doc = _doc(paths={"/users/{id}": {"get": {"responses": {"200": {"description": "OK"}}}}})
        errors = validate_path_params(doc)
        assert errors == {"paths./users/{id}.get.parameters.id": "path parameter 'id' is not declared"}

    def test_optional_path_param(self):
        param = {"name": "id", "in": "path", "required": False}
        doc = _doc(paths={"/users/{id}": {"get": {"parameters": [param], "responses": {"200": {"description": "OK"}}}}})
        assert "must be required" in validate_path_params(doc)["paths./users/{id}.get.parameters.id"]

    def test_non_operation_keys_are_ignored(self):
        doc = _doc(paths={"/ping": {"parameters": [], "get": {"responses": {"200": {"description": "OK"}}}}})
        assert validate_document(doc) == {}


class TestValidateDocument:
    def test_all_valid(self):
        assert validate_document(_doc()) == {}

    def test_not_a_mapping(self):
        assert validate_document([]) == {"$": "document must be a mapping"}

    def test_collects_every_error(self):
        doc = _doc(components={"schemas": {}}, info={"title": "API"})
        errors = validate_document(doc)
        assert "info.version" in errors
        assert any("unresolved $ref" in message for message in errors.values())
