"""BazelLabel 与标签工具函数单元测试"""

from __future__ import annotations

import pytest

from bzlimport.core.exceptions import ValidationError
from bzlimport.core.models import BazelLabel, canonical_label, is_wildcard, package_of


class TestBazelLabel:
    def test_literal(self) -> None:
        label = BazelLabel("//a/b:c")
        assert label.package == "//a/b"
        assert label.package_path == "a/b"
        assert label.target_name == "c"
        assert not label.is_wildcard
        assert label.canonical == "//a/b:c"

    def test_package_default_form(self) -> None:
        label = BazelLabel("//a/b")
        assert label.is_package_default
        assert label.target_name == "b"
        assert label.canonical == "//a/b:b"

    @pytest.mark.parametrize("text", ["//a:*", "//a:all", "//a:all-targets"])
    def test_wildcards(self, text: str) -> None:
        label = BazelLabel(text)
        assert label.is_wildcard
        assert label.canonical == text

    def test_to_wildcard(self) -> None:
        assert BazelLabel("//a/b").to_wildcard().label == "//a/b:*"

    @pytest.mark.parametrize("text", ["//a/...", "//...", "//a/b/...:all"])
    def test_recursive_pattern_kept_verbatim(self, text: str) -> None:
        label = BazelLabel(text)
        assert label.is_recursive
        assert label.is_wildcard
        assert label.canonical == text

    def test_main_repository_prefix_normalized(self) -> None:
        assert BazelLabel("@//a:b").label == "//a:b"
        assert BazelLabel("  //a:b ").label == "//a:b"

    def test_external_repository(self) -> None:
        label = BazelLabel("@maven//com/x:y")
        assert label.repository == "@maven"
        assert label.package == "@maven//com/x"

    @pytest.mark.parametrize("text", ["", "   ", "a/b:c", "a//b"])
    def test_invalid(self, text: str) -> None:
        with pytest.raises(ValidationError):
            BazelLabel(text)


class TestLabelHelpers:
    def test_canonical_label(self) -> None:
        assert canonical_label("//a") == "//a:a"
        assert canonical_label(" //a:x ") == "//a:x"
        assert canonical_label("not-a-label ") == "not-a-label"

    def test_package_of(self) -> None:
        assert package_of("//a/b:c") == "//a/b"
        assert package_of("junk") == "junk"

    def test_is_wildcard(self) -> None:
        assert is_wildcard("//a:*")
        assert not is_wildcard("//a")
