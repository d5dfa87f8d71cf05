"""Declarations shared by the test modules and the CLI tests (``sample_api:app``)."""

from route_oas.declarations.contract import (
    Array,
    Contract,
    Hash,
    Integer,
    String,
    either,
    optional,
    pred,
    required,
)
from route_oas.declarations.entity import Entity, expose
from route_oas.declarations.route import Application


class AddressEntity(Entity):
    exposures = [
        expose("street", type=str),
        expose("city", type=str, desc="City name"),
    ]


class UserEntity(Entity):
    documentation = {"desc": "A user"}
    exposures = [
        expose("id", type=int, desc="User id"),
        expose("name", type=str, example="Ada"),
        expose("email", type=str, if_=lambda user, opts: opts.get("admin")),
        expose("address", using=AddressEntity),
        expose("billing_address", using=AddressEntity, nullable=True),
    ]


class AdminEntity(UserEntity):
    exposures = [expose("permissions", type="[String]")]


class ErrorEntity(Entity):
    exposures = [
        expose("code", type=int),
        expose("message", type=str),
    ]


class NodeEntity(Entity):
    exposures = [
        expose("name", type=str),
        expose("children", using="NodeEntity", is_array=True),
    ]


class CreateUserContract(Contract):
    types = {
        "name": String,
        "email": String,
        "age": Integer,
        "nickname": String.optional_(),
        "tags": Array(String),
        "address": Hash({"street": String, "zip": String}),
    }
    rules = {
        "name": required("name", pred("str?"), pred("size?", range(1, 51))),
        "email": required("email", pred("str?"), pred("format?", r"^[^@]+@[^@]+$")),
        "age": optional("age", pred("int?"), pred("gteq?", 0)),
    }


class ScoreContract(Contract):
    types = {"score": Integer}
    rules = {
        "score": required("score", either(pred("range?", (1, 10)), pred("range?", (5, 20)))),
    }


class SearchContract(Contract):
    types = {
        "id": Integer,
        "q": String,
        "page": Integer.optional_(),
    }
    rules = {"q": required("q", pred("filled?"))}


def build_app() -> Application:
    app = Application()
    app.add_route("GET", "/users(.json)", entity=UserEntity, is_array=True, tags=["users"], summary="List users")
    app.add_route(
        "GET",
        "/users/:id(.json)",
        params={"id": {"type": int, "desc": "User id"}},
        tags=["users"],
        http_codes=[
            {"code": 200, "message": "OK", "model": UserEntity},
            {"code": 404, "message": "Not found", "model": ErrorEntity},
        ],
    )
    app.add_route("POST", "/users", contract=CreateUserContract, entity=UserEntity, tags=["users"])
    app.add_route("DELETE", "/users/:user_id", params={"user_id": {"type": int}}, tags=["users"])
    app.add_route("GET", "/admins/:id", params={"id": {"type": int}}, entity=AdminEntity, tags=["admins"])
    app.add_route("GET", "/nodes/:id", params={"id": {"type": int}}, entity=NodeEntity, tags=["nodes"])
    app.add_route(
        "GET",
        "/users/:id/search",
        params={"id": {"type": int}},
        contract=SearchContract,
        entity=UserEntity,
        is_array=True,
        tags=["users"],
    )
    return app


app = build_app()
