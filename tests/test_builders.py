import pytest

from route_oas.builders.content_types import resolve_content_types
from route_oas.builders.nested_params import NestedParamsBuilder, split_bracket_key
from route_oas.builders.operation import OperationBuilder
from route_oas.builders.params import ParamSchemaBuilder, is_hidden, resolve_location
from route_oas.builders.paths import in_namespace, is_hidden_route, map_param_names, normalize_template, sanitize_path
from route_oas.builders.response import ResponseBuilder, pluralize, underscore
from route_oas.declarations.route import Application, Route
from route_oas.errors import InvalidResponseSpecError
from route_oas.introspection.registry import BuildContext
from route_oas.model.api import API

from sample_api import AddressEntity, CreateUserContract, ErrorEntity, SearchContract, UserEntity


def _operation(route: Route, app: Application | None = None, template: str | None = None):
    api = API()
    op = OperationBuilder(route, api, BuildContext(), app=app, template=template).build()
    return api, op


class TestParamLocation:
    def test_path_param_wins(self):
        assert resolve_location("id", {"documentation": {"in": "query"}}, ["id"]) == "path"

    def test_documentation_hint(self):
        assert resolve_location("token", {"documentation": {"param_type": "header"}}, []) == "header"
        assert resolve_location("token", {"documentation": {"in": "Header"}}, []) == "header"

    def test_body_name_sends_params_to_body(self):
        assert resolve_location("name", {}, [], body_name="user") == "body"

    def test_default_is_query(self):
        assert resolve_location("page", {}, []) == "query"

    def test_hidden(self):
        assert is_hidden({"documentation": {"hidden": True}})
        assert is_hidden({"documentation": {"hidden": lambda: True}})
        assert not is_hidden({"required": True, "documentation": {"hidden": True}})


class TestParamSchema:
    def build(self, spec):
        return ParamSchemaBuilder(BuildContext()).build(spec)

    def test_primitive_with_documentation(self):
        schema = self.build({"type": int, "desc": "Page", "documentation": {"example": 2, "minimum": 1}})
        assert schema.type == "integer"
        assert schema.description == "Page"
        assert schema.examples == 2
        assert schema.minimum == 1

    def test_range_values_give_bounds(self):
        schema = self.build({"type": int, "values": range(1, 11)})
        assert (schema.minimum, schema.maximum) == (1, 10)
        assert schema.enum is None

    def test_tuple_values_are_inclusive(self):
        schema = self.build({"type": float, "values": (0.5, 2.5)})
        assert (schema.minimum, schema.maximum) == (0.5, 2.5)

    def test_list_and_callable_values(self):
        assert self.build({"type": str, "values": ["a", "b"]}).enum == ["a", "b"]
        assert self.build({"type": str, "values": lambda: ["x"]}).enum == ["x"]
        assert self.build({"type": str, "values": {"value": ["y"]}}).enum == ["y"]
        assert self.build({"type": str, "values": lambda v: v in ("a",)}).enum is None

    def test_typed_array_string(self):
        schema = self.build({"type": "[Integer]"})
        assert schema.type == "array"
        assert schema.items.type == "integer"

    def test_multi_type(self):
        schema = self.build({"type": "[String, Integer]"})
        assert [s.type for s in schema.one_of] == ["string", "integer"]

    def test_elements(self):
        schema = self.build({"type": list, "elements": AddressEntity})
        assert schema.type == "array"
        assert schema.items.canonical_name == "AddressEntity"

    def test_entity_array_from_documentation(self):
        schema = self.build({"type": list, "documentation": {"type": "AddressEntity"}})
        assert schema.items.canonical_name == "AddressEntity"

    def test_canonical_schema_is_never_decorated(self):
        ctx = BuildContext()
        address = ctx.build(AddressEntity)
        schema = ParamSchemaBuilder(ctx).build({"type": AddressEntity, "desc": "Where", "allow_nil": True})
        assert schema is not address
        assert schema.all_of[0] is address
        assert schema.description == "Where"
        assert schema.nullable is True
        assert address.description is None

    def test_undecorated_canonical_schema_is_reused(self):
        ctx = BuildContext()
        assert ParamSchemaBuilder(ctx).build({"type": AddressEntity}) is ctx.build(AddressEntity)


class TestNestedParams:
    def test_split_bracket_key(self):
        assert split_bracket_key("company[address][street]") == ("company", "address[street]")
        assert split_bracket_key("name") == ("name", None)

    def test_nested_objects(self):
        builder = NestedParamsBuilder(ParamSchemaBuilder(BuildContext()).build)
        schema = builder.build(
            {
                "address": {"type": dict, "required": True, "desc": "Postal address"},
                "address[street]": {"type": str, "required": True},
                "address[geo][lat]": {"type": float},
            }
        )
        address = schema.properties["address"]
        assert schema.required == ["address"]
        assert address.type == "object"
        assert address.description == "Postal address"
        assert address.required == ["street"]
        assert address.properties["geo"].properties["lat"].type == "number"

    def test_array_parent_becomes_array_of_objects(self):
        builder = NestedParamsBuilder(ParamSchemaBuilder(BuildContext()).build)
        schema = builder.build({"items": {"type": list}, "items[sku]": {"type": str}})
        items = schema.properties["items"]
        assert items.type == "array"
        assert items.items.properties["sku"].type == "string"


class TestRequestBuilder:
    def test_nested_body_params(self):
        route = Route(
            method="POST",
            path="/orders",
            params={
                "note": {"type": str, "documentation": {"in": "query"}},
                "customer": {"type": dict, "required": True},
                "customer[name]": {"type": str, "required": True},
            },
        )
        _, op = _operation(route)
        assert [p.name for p in op.parameters] == ["note"]
        body = op.request_body.media_types[0].schema_node
        assert body.canonical_name == "post_orders_Request"
        assert body.properties["customer"].properties["name"].type == "string"
        assert op.request_body.required is True

    def test_undeclared_container_goes_to_body(self):
        route = Route(method="POST", path="/orders", params={"customer[name]": {"type": str}})
        _, op = _operation(route)
        assert op.parameters == []
        body = op.request_body.media_types[0].schema_node
        assert list(body.properties) == ["customer"]

    def test_get_has_no_body(self):
        route = Route(method="GET", path="/search", params={"filter": {"type": dict}})
        _, op = _operation(route)
        assert op.request_body is None

    def test_get_body_when_documented(self):
        route = Route(
            method="GET",
            path="/search",
            params={"filter": {"type": dict}},
            options={"documentation": {"request_body": True}},
        )
        _, op = _operation(route)
        assert op.request_body is not None

    def test_contract_replaces_body(self):
        ctx = BuildContext()
        route = Route(method="POST", path="/users", options={"contract": CreateUserContract})
        op = OperationBuilder(route, API(), ctx).build()
        assert op.request_body.media_types[0].schema_node is ctx.build(CreateUserContract)
        assert op.request_body.required is True

    def test_get_contract_becomes_query_params(self):
        route = Route(
            method="GET",
            path="/users/:id/search",
            params={"id": {"type": int}},
            options={"contract": SearchContract, "documentation": {"params": {"q": {"style": "form", "explode": False}}}},
        )
        _, op = _operation(route, template="/users/{id}/search")
        by_name = {p.name: p for p in op.parameters}
        assert list(by_name) == ["id", "q", "page"]
        assert by_name["id"].location == "path"
        assert by_name["q"].location == "query"
        assert by_name["q"].required is True
        assert by_name["q"].style == "form"
        assert by_name["q"].explode is False
        assert by_name["page"].required is False
        assert op.request_body is None

    def test_body_name_is_carried(self):
        route = Route(method="POST", path="/users", params={"name": {"type": str}}, options={"body_name": "user"})
        _, op = _operation(route)
        assert op.parameters == []
        assert op.request_body.body_name == "user"

    def test_renamed_path_params(self):
        route = Route(method="DELETE", path="/users/:user_id", params={"user_id": {"type": int}})
        api = API()
        op = OperationBuilder(route, api, BuildContext(), template="/users/{id}", path_param_name_map={"user_id": "id"}).build()
        assert [(p.name, p.location, p.required) for p in op.parameters] == [("id", "path", True)]


class TestResponseBuilder:
    def build(self, route, app=None):
        return ResponseBuilder(route, BuildContext(), app).build()

    def test_default_response(self):
        [resp] = self.build(Route(method="GET", path="/users", options={"entity": UserEntity}))
        assert resp.http_status == "200"
        assert resp.description == "Success"
        assert resp.media_types[0].schema_node.canonical_name == "UserEntity"

    def test_default_status(self):
        [resp] = self.build(Route(method="POST", path="/users", options={"default_status": 201}))
        assert resp.http_status == "201"
        assert resp.media_types[0].schema_node.type == "string"

    def test_http_codes(self):
        route = Route(
            method="GET",
            path="/users/:id",
            options={"http_codes": [[200, "OK", UserEntity], [404, "Not found", ErrorEntity]]},
        )
        responses = self.build(route)
        assert [r.http_status for r in responses] == ["200", "404"]
        assert responses[1].description == "Not found"
        assert responses[1].media_types[0].schema_node.canonical_name == "ErrorEntity"

    def test_option_entity_wins_over_description_failures(self):
        route = Route(
            method="GET",
            path="/users",
            options={"entity": UserEntity},
            settings={"description": {"failure": [{"code": 404, "message": "Missing", "model": ErrorEntity}]}},
        )
        responses = self.build(route)
        assert [r.http_status for r in responses] == ["200"]

    def test_settings_desc_block(self):
        route = Route(
            method="GET",
            path="/users",
            settings={"description": {"success": {"code": 200, "model": UserEntity}, "failure": [[422, "Invalid"]]}},
        )
        responses = self.build(route)
        assert [r.http_status for r in responses] == ["422", "200"]

    def test_documentation_responses(self):
        route = Route(
            method="GET",
            path="/users",
            options={
                "entity": UserEntity,
                "documentation": {"responses": {201: {"description": "Created", "x-rate": 5}}},
            },
        )
        [resp] = self.build(route)
        assert resp.http_status == "201"
        assert resp.description == "Created"
        assert resp.extensions == {"x-rate": 5}
        assert resp.media_types[0].schema_node.canonical_name == "UserEntity"

    def test_as_merges_specs(self):
        route = Route(
            method="GET",
            path="/dashboard",
            options={
                "success": [
                    {"code": 200, "model": UserEntity, "as": "user", "required": True},
                    {"code": 200, "model": AddressEntity, "as": "addresses", "is_array": True},
                ]
            },
        )
        [resp] = self.build(route)
        schema = resp.media_types[0].schema_node
        assert list(schema.properties) == ["user", "addresses"]
        assert schema.required == ["user"]
        assert schema.properties["user"].canonical_name == "UserEntity"
        assert schema.properties["addresses"].type == "array"

    def test_one_of(self):
        route = Route(
            method="GET",
            path="/thing",
            options={"success": {"code": 200, "one_of": [{"model": UserEntity}, {"model": ErrorEntity}]}},
        )
        [resp] = self.build(route)
        names = [s.canonical_name for s in resp.media_types[0].schema_node.one_of]
        assert names == ["UserEntity", "ErrorEntity"]

    def test_one_of_without_model_is_rejected(self):
        route = Route(method="GET", path="/thing", options={"success": {"code": 200, "one_of": [{"message": "x"}]}})
        with pytest.raises(InvalidResponseSpecError):
            self.build(route)

    def test_root_wrapping(self):
        route = Route(
            method="GET",
            path="/users",
            options={"entity": UserEntity, "is_array": True},
            settings={"swagger": {"root": True}},
        )
        [resp] = self.build(route)
        schema = resp.media_types[0].schema_node
        assert list(schema.properties) == ["users"]
        assert schema.properties["users"].type == "array"

    def test_custom_root(self):
        route = Route(method="GET", path="/me", options={"entity": UserEntity}, settings={"swagger": {"root": "data"}})
        [resp] = self.build(route)
        assert list(resp.media_types[0].schema_node.properties) == ["data"]

    def test_headers(self):
        route = Route(
            method="GET",
            path="/users",
            options={"documentation": {"headers": {"X-Total": {"description": "Total count", "type": "integer"}}}},
        )
        [resp] = self.build(route)
        assert resp.headers == [{"name": "X-Total", "schema": {"type": "integer", "description": "Total count"}}]

    def test_inflection_helpers(self):
        assert underscore("BlogPost") == "blog_post"
        assert pluralize("category") == "categories"
        assert pluralize("box") == "boxes"
        assert pluralize("user") == "users"


class TestContentTypes:
    def test_route_content_types_win(self):
        route = Route(method="GET", path="/x", options={"content_types": {"xml": "application/xml"}})
        app = Application(content_types={"json": "application/json"})
        assert resolve_content_types(route, app) == ["application/xml"]

    def test_app_content_types_filtered_by_format(self):
        route = Route(method="GET", path="/x", options={"format": "xml"})
        app = Application(content_types={"json": "application/json", "xml": "application/xml"})
        assert resolve_content_types(route, app) == ["application/xml"]

    def test_app_default_format(self):
        route = Route(method="GET", path="/x")
        app = Application(content_types={"json": "application/json", "txt": "text/plain"}, default_format="txt")
        assert resolve_content_types(route, app) == ["text/plain"]

    def test_format_mime(self):
        route = Route(method="GET", path="/x", options={"format": "xml"})
        assert resolve_content_types(route) == ["application/xml"]

    def test_json_fallback(self):
        assert resolve_content_types(Route(method="GET", path="/x")) == ["application/json"]


class TestPaths:
    def test_sanitize(self):
        assert sanitize_path("/users/:id(.json)") == "/users/{id}"
        assert sanitize_path("/users/:id(.:format)") == "/users/{id}"
        assert sanitize_path("/users(.json)(.:format)") == "/users"

    def test_normalize_and_map(self):
        assert normalize_template("/users/:user_id") == normalize_template("/users/{id}")
        assert map_param_names("/users/{id}", "/users/{user_id}") == {"user_id": "id"}
        assert map_param_names("/users/{id}", "/users/{id}") is None

    def test_namespace(self):
        assert in_namespace("/users/:id", "users")
        assert in_namespace("/users", "/users")
        assert not in_namespace("/users_admin", "users")
        assert not in_namespace("/posts", "users")

    def test_hidden_route(self):
        assert is_hidden_route(Route(method="GET", path="/x", options={"hidden": True}))
        assert is_hidden_route(Route(method="GET", path="/x", options={"swagger": {"hidden": True}}))
        assert is_hidden_route(Route(method="GET", path="/x", settings={"swagger": {"hidden": lambda: True}}))
        assert not is_hidden_route(Route(method="GET", path="/x", options={"hidden": False}, settings={"swagger": {"hidden": True}}))


class TestOperationBuilder:
    def test_fields(self):
        route = Route(
            method="PUT",
            path="/users/:id",
            params={"id": {"type": int}},
            options={
                "tags": ["users"],
                "deprecated": True,
                "security": [{"api_key": []}],
                "documentation": {"x-internal": True},
            },
            settings={"description": {"description": "Update a user. Replaces all fields.", "detail": "Long text"}},
        )
        api, op = _operation(route, template="/users/{id}")
        assert op.operation_id == "put_users_id"
        assert op.summary == "Update a user. Replaces all fields."
        assert op.description == "Long text"
        assert op.deprecated is True
        assert op.tag_names == ["users"]
        assert op.security == [{"api_key": []}]
        assert op.extensions == {"x-internal": True}
        assert api.tag_defs == [{"name": "users", "description": "Operations about userss"}]

    def test_nickname(self):
        _, op = _operation(Route(method="GET", path="/x", options={"nickname": "fetchX"}))
        assert op.operation_id == "fetchX"

    def test_documentation_security_wins(self):
        route = Route(
            method="GET",
            path="/x",
            options={"auth": [{"basic": []}], "documentation": {"security": [{"oauth": ["read"]}]}},
        )
        _, op = _operation(route)
        assert op.security == [{"oauth": ["read"]}]
