"""Response spec parsers.

Each parser turns one style of response declaration into a list of
normalized spec dicts with the keys code, message, entity, headers,
extensions, examples, as, one_of, is_array and required. The first
applicable parser wins; DefaultResponseParser always applies.
"""

from route_oas.declarations.route import Route
from route_oas.introspection.entity import extensions_of

SOURCE_KEYS = ("http_codes", "failure", "success")


def _status(entry: dict, default):
    return entry.get("code") or entry.get("status") or entry.get("http_status") or default


def _message(entry: dict):
    return entry.get("message") or entry.get("description") or entry.get("desc")


def _entity(entry: dict, fallback=None):
    return entry.get("model") or entry.get("entity") or fallback


def _default_status(route: Route) -> str:
    return str(route.options.get("default_status") or 200)


class ResponseParser:
    def applicable(self, route: Route) -> bool:
        raise NotImplementedError

    def parse(self, route: Route) -> list[dict]:
        raise NotImplementedError


class DocumentationResponsesParser(ResponseParser):
    """``documentation={"responses": {code: {...}}}``"""

    def applicable(self, route: Route) -> bool:
        return isinstance(route.documentation.get("responses"), dict)

    def parse(self, route: Route) -> list[dict]:
        specs = []
        for code, doc in route.documentation["responses"].items():
            doc = {str(k): v for k, v in (doc or {}).items()}
            specs.append(
                {
                    "code": str(code),
                    "message": _message(doc),
                    "headers": doc.get("headers"),
                    "entity": _entity(doc, route.options.get("entity")),
                    "extensions": extensions_of(doc) or None,
                    "examples": doc.get("examples"),
                    "as": doc.get("as"),
                    "one_of": doc.get("one_of"),
                    "is_array": doc.get("is_array"),
                    "required": doc.get("required"),
                }
            )
        return specs


class HttpCodesParser(ResponseParser):
    """``http_codes`` / ``failure`` / ``success`` / hash ``entity`` declarations.

    Read from route options first, then from the description settings.
    """

    def _declares(self, data: dict) -> bool:
        return any(data.get(key) for key in SOURCE_KEYS)

    def applicable(self, route: Route) -> bool:
        entity = route.options.get("entity")
        in_options = self._declares(route.options) or (
            isinstance(entity, dict) and (entity.get("code") or entity.get("model"))
        )
        desc = route.description_settings
        in_settings = isinstance(desc, dict) and (self._declares(desc) or bool(desc.get("entity")))
        return bool(in_options or in_settings)

    def parse(self, route: Route) -> list[dict]:
        specs = self._parse_options(route)
        if specs:
            return specs
        return self._parse_settings(route)

    def _parse_options(self, route: Route) -> list[dict]:
        specs = self._parse_values(route.options, route)
        entity = route.options.get("entity")
        if entity is None:
            return specs
        if not specs or self._declares(route.description_settings) or route.description_settings.get("entity"):
            return self._append_entity(specs, entity, route)
        return specs

    def _parse_settings(self, route: Route) -> list[dict]:
        desc = route.description_settings
        specs = self._parse_values(desc, route)
        if desc.get("entity"):
            specs = self._append_entity(specs, desc["entity"], route)
        return specs

    def _parse_values(self, data: dict, route: Route) -> list[dict]:
        specs = []
        for key in SOURCE_KEYS:
            value = data.get(key)
            if value:
                specs.extend(self._normalize(entry, route) for entry in self._entries(value))
        return specs

    def _entries(self, value) -> list:
        if isinstance(value, dict):
            return [value]
        if isinstance(value, (list, tuple)):
            if not value:
                return []
            if isinstance(value[0], (dict, list, tuple)):
                return list(value)
        return [value]

    def _append_entity(self, specs: list[dict], entity, route: Route) -> list[dict]:
        spec = self._entity_spec(entity, route)
        if any(str(s["code"]) == str(spec["code"]) for s in specs):
            return specs
        return specs + [spec]

    def _entity_spec(self, entity, route: Route) -> dict:
        is_array = route.options.get("is_array")
        if isinstance(entity, dict):
            return {
                "code": str(entity.get("code") or 200),
                "message": entity.get("message"),
                "entity": _entity(entity),
                "headers": entity.get("headers"),
                "examples": entity.get("examples"),
                "as": entity.get("as"),
                "is_array": entity.get("is_array") or is_array,
                "required": entity.get("required"),
            }
        return {"code": "200", "message": None, "entity": entity, "is_array": is_array}

    def _normalize(self, entry, route: Route) -> dict:
        fallback = route.options.get("entity")
        if isinstance(fallback, dict):
            fallback = _entity(fallback)
        if isinstance(entry, dict):
            return {
                "code": str(_status(entry, _default_status(route))),
                "message": _message(entry),
                "entity": _entity(entry, fallback),
                "headers": entry.get("headers"),
                "examples": entry.get("examples"),
                "as": entry.get("as"),
                "one_of": entry.get("one_of"),
                "is_array": entry.get("is_array") or route.options.get("is_array"),
                "required": entry.get("required"),
            }
        if isinstance(entry, (list, tuple)):
            if not entry:
                return {"code": _default_status(route), "message": None, "entity": fallback}
            code, message, entity, examples = (list(entry) + [None] * 4)[:4]
            return {
                "code": str(code),
                "message": message,
                "entity": entity or fallback,
                "examples": examples,
            }
        # a plain status code
        return {"code": str(entry), "message": None, "entity": fallback}


class DefaultResponseParser(ResponseParser):
    def applicable(self, route: Route) -> bool:
        return True

    def parse(self, route: Route) -> list[dict]:
        entity = route.options.get("entity")
        return [{"code": _default_status(route), "message": "Success", "entity": entity, "is_array": route.options.get("is_array")}]


DEFAULT_PARSERS = (DocumentationResponsesParser, HttpCodesParser, DefaultResponseParser)
