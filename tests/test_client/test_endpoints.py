"""Tests for the endpoint request builders."""

from __future__ import annotations

import pytest

from fingerbank.client.endpoints import (
    DEFAULT_USER_AGENT,
    Endpoints,
    build_interrogate_parameters,
)
from fingerbank.exceptions import InvalidUsageError
from fingerbank.models import DEFAULT_BASE_URL, HTTPMethod, InterrogateParameters


@pytest.fixture()
def endpoints() -> Endpoints:
    return Endpoints("secret")


class TestEndpoints:
    def test_default_base_url(self, endpoints: Endpoints) -> None:
        assert endpoints.base_url == DEFAULT_BASE_URL

    def test_trailing_slash_stripped(self) -> None:
        assert Endpoints("k", base_url="https://fb.local/api/v2/").base_url == "https://fb.local/api/v2"

    def test_common_request_shape(self, endpoints: Endpoints) -> None:
        request = endpoints.device(1)
        assert request.method == HTTPMethod.GET
        assert request.query_params == {"key": "secret"}
        assert request.headers == {"Accept": "application/json", "User-Agent": DEFAULT_USER_AGENT}

    def test_custom_user_agent(self) -> None:
        request = Endpoints("k", user_agent="packetfence/13").device(1)
        assert request.headers["User-Agent"] == "packetfence/13"

    def test_interrogate(self, endpoints: Endpoints) -> None:
        params = InterrogateParameters(user_agents=["Mozilla/5.0", "curl/8.0"], dhcp_vendor="MSFT 5.0")
        request = endpoints.interrogate(params)
        assert request.base_url == f"{DEFAULT_BASE_URL}/combinations/interrogate"
        assert request.query_params == {
            "key": "secret",
            "dhcp_vendor": "MSFT 5.0",
            "user_agents": "Mozilla/5.0,curl/8.0",
        }

    def test_device(self, endpoints: Endpoints) -> None:
        assert endpoints.device(42).base_url == f"{DEFAULT_BASE_URL}/devices/42"

    @pytest.mark.parametrize("device_id", [0, -3])
    def test_device_id_must_be_positive(self, endpoints: Endpoints, device_id: int) -> None:
        with pytest.raises(InvalidUsageError):
            endpoints.device(device_id)

    def test_base_info_without_fields(self, endpoints: Endpoints) -> None:
        request = endpoints.devices_base_info()
        assert request.base_url == f"{DEFAULT_BASE_URL}/devices/base_info"
        assert "fields" not in request.query_params

    def test_base_info_fields_sorted_and_deduplicated(self, endpoints: Endpoints) -> None:
        request = endpoints.devices_base_info(["parent_id", "name", "id", "name"])
        assert request.query_params["fields"] == "id,name,parent_id"

    def test_base_info_unknown_field(self, endpoints: Endpoints) -> None:
        with pytest.raises(InvalidUsageError, match="colour"):
            endpoints.devices_base_info(["id", "colour"])

    def test_account_info(self, endpoints: Endpoints) -> None:
        assert endpoints.account_info().base_url == f"{DEFAULT_BASE_URL}/users/secret"

    def test_download_database(self, endpoints: Endpoints) -> None:
        assert endpoints.download_database().base_url == f"{DEFAULT_BASE_URL}/download/db"

    def test_describe_masks_api_key(self, endpoints: Endpoints) -> None:
        assert endpoints.describe(endpoints.account_info()) == f"GET {DEFAULT_BASE_URL}/users/***"
        assert endpoints.describe(endpoints.device(33)) == f"GET {DEFAULT_BASE_URL}/devices/33"


class TestBuildInterrogateParameters:
    def test_from_keywords(self) -> None:
        params = build_interrogate_parameters(None, {"mac": "00-11-22-33-44-55"})
        assert params.mac == "001122334455"

    def test_object_passed_through(self) -> None:
        original = InterrogateParameters(dhcp_fingerprint="1,3,6")
        assert build_interrogate_parameters(original, {}) is original

    def test_keywords_override_object(self) -> None:
        original = InterrogateParameters(dhcp_fingerprint="1,3,6")
        params = build_interrogate_parameters(original, {"dhcp_fingerprint": "1,15"})
        assert params.dhcp_fingerprint == "1,15"

    def test_empty_rejected(self) -> None:
        with pytest.raises(InvalidUsageError):
            build_interrogate_parameters(None, {})

    def test_bad_mac_rejected(self) -> None:
        with pytest.raises(InvalidUsageError, match="MAC"):
            build_interrogate_parameters(None, {"mac": "not-a-mac"})

    def test_unknown_keyword_ignored(self) -> None:
        params = build_interrogate_parameters(None, {"mac": "001122334455", "colour": "red"})
        assert params.to_query_params() == {"mac": "001122334455"}
