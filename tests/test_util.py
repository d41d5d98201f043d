"""Tests for pillow_request.util helpers."""

import pytest

from pillow_request.util import (
    get_cookie_name_and_value,
    is_str_list,
    is_valid_value,
    use_https_protocol,
)


class TestIsStrList:
    def test_list_of_strings(self) -> None:
        assert is_str_list(["value1", "value2"]) is True

    def test_tuple_of_strings(self) -> None:
        assert is_str_list(("a",)) is True

    def test_list_with_non_strings(self) -> None:
        assert is_str_list([1, 2]) is False
        assert is_str_list(["a", None]) is False

    def test_scalar_string_is_not_a_list(self) -> None:
        assert is_str_list("value") is False

    def test_empty_list_rejected(self) -> None:
        """Empty lists would create a key with no values."""
        assert is_str_list([]) is False


class TestIsValidValue:
    @pytest.mark.parametrize("value", ["v", ["v1", "v2"]])
    def test_valid(self, value: object) -> None:
        assert is_valid_value(value) is True

    @pytest.mark.parametrize("value", ["", [], None, 5, {"a": "b"}, [1]])
    def test_invalid(self, value: object) -> None:
        assert is_valid_value(value) is False


class TestUseHttpsProtocol:
    def test_https_url(self) -> None:
        assert use_https_protocol("https://localhost") is True

    def test_http_url(self) -> None:
        assert use_https_protocol("http://localhost") is False

    def test_other_scheme_is_not_https(self) -> None:
        assert use_https_protocol("ftp://example.com/file") is False

    def test_schemeless_gives_no_opinion(self) -> None:
        assert use_https_protocol("localhost") is None

    def test_host_and_port_without_scheme_gives_no_opinion(self) -> None:
        """'localhost:8080' looks like scheme 'localhost' but has no host."""
        assert use_https_protocol("localhost:8080") is None

    def test_non_string(self) -> None:
        assert use_https_protocol(5) is None
        assert use_https_protocol(None) is None


class TestGetCookieNameAndValue:
    def test_name_and_value(self) -> None:
        assert get_cookie_name_and_value("cookie1=cookieValue; Path=/") == {
            "name": "cookie1",
            "value": "cookieValue",
        }

    def test_attribute_without_equals(self) -> None:
        assert get_cookie_name_and_value("cookie1=cookieValue; options") == {
            "name": "cookie1",
            "value": "cookieValue",
        }

    def test_value_may_contain_equals(self) -> None:
        """Only the first '=' separates name from value."""
        assert get_cookie_name_and_value("token=abc==; HttpOnly") == {
            "name": "token",
            "value": "abc==",
        }

    def test_first_matching_fragment_wins(self) -> None:
        """Fragments without '=' are skipped; later attributes are not inspected."""
        result = get_cookie_name_and_value("Secure; session=xyz; Path=/")
        assert result == {"name": "session", "value": "xyz"}

    def test_no_equals_anywhere(self) -> None:
        assert get_cookie_name_and_value("value;//cookie1cookieValue; options") is None

    def test_non_string(self) -> None:
        assert get_cookie_name_and_value(6) is None
        assert get_cookie_name_and_value("") is None
