import pytest

from route_oas.config import GenerateOptions, load_options
from route_oas.errors import ConfigurationError


class TestGenerateOptions:
    def test_defaults(self):
        opts = load_options()
        assert opts.title == "API"
        assert opts.version == "1"
        assert opts.servers is None
        assert opts.models == []
        assert opts.server_list() == []

    def test_info_mapping(self):
        opts = load_options(info={"title": "Shop", "version": 3, "license": {"name": "MIT"}})
        assert opts.title == "Shop"
        assert opts.version == "3"
        assert opts.license == {"name": "MIT"}

    def test_info_must_be_mapping(self):
        with pytest.raises(ConfigurationError):
            load_options(info="Shop")

    def test_base_path_gets_leading_slash(self):
        assert load_options(base_path="api").base_path == "/api"
        assert load_options(base_path="/api").base_path == "/api"

    def test_scalars_are_listified(self):
        opts = load_options(schemes="https", models="pkg:Model")
        assert opts.schemes == ["https"]
        assert opts.models == ["pkg:Model"]

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_options(hostname="api.test")
        assert "hostname" in str(exc_info.value)

    def test_server_list_from_host(self):
        opts = GenerateOptions(host="api.test", base_path="v1")
        assert opts.server_list() == [{"url": "https://api.test/v1"}]

    def test_explicit_servers_win(self):
        opts = GenerateOptions(host="api.test", servers=["https://a.test", {"url": "https://b.test", "description": "B"}])
        assert opts.server_list() == [
            {"url": "https://a.test"},
            {"url": "https://b.test", "description": "B"},
        ]
