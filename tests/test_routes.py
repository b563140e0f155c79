"""Tests for chat URL helpers."""

import pytest

from vibe_builder.core.routes import (
    ViewType,
    base_path,
    encode_title,
    has_explicit_view_suffix,
    has_view_suffix,
    session_path,
    view_from_path,
    view_path,
)


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/chat/s1/my-app/app", ViewType.PREVIEW),
        ("/chat/s1/my-app/code", ViewType.CODE),
        ("/chat/s1/my-app/data", ViewType.DATA),
        ("/chat/s1/my-app", ViewType.PREVIEW),
        ("/chat/s1/my-app/settings", ViewType.PREVIEW),
        ("", ViewType.PREVIEW),
    ],
)
def test_view_from_path(path, expected):
    assert view_from_path(path) is expected


def test_explicit_suffix_is_code_or_data_only():
    assert has_explicit_view_suffix("/chat/s/t/code")
    assert has_explicit_view_suffix("/chat/s/t/data")
    assert not has_explicit_view_suffix("/chat/s/t/app")
    assert not has_explicit_view_suffix("/chat/s/t")
    assert has_view_suffix("/chat/s/t/app")
    assert not has_view_suffix("/chat/s/t")


def test_base_path_strips_suffix():
    assert base_path("/chat/s/t/code") == "/chat/s/t"
    assert base_path("/chat/s/t") == "/chat/s/t"


def test_view_path_uses_app_for_preview():
    assert view_path("s1", "my-app", ViewType.PREVIEW) == "/chat/s1/my-app/app"
    assert view_path("s1", "my-app", ViewType.CODE) == "/chat/s1/my-app/code"
    assert view_path("s1", "my-app", ViewType.DATA) == "/chat/s1/my-app/data"
    assert session_path("s1", "my-app") == "/chat/s1/my-app"


class TestEncodeTitle:
    def test_spaces_become_dashes_and_lowercase(self):
        assert encode_title("My Todo App") == "my-todo-app"

    def test_empty_title_falls_back(self):
        assert encode_title("") == "untitled-session"

    def test_reserved_characters_are_escaped(self):
        assert encode_title("a/b?c") == "a%2fb%3fc"
