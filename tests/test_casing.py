from __future__ import annotations

import pytest

from cvsmith.markup.casing import CasingNormalizer


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("github and linkedin", "GitHub and LinkedIn"),
        ("JAVASCRIPT, typescript", "JavaScript, TypeScript"),
        ("built with nodejs", "built with Node.js"),
        ("angularjs beats angular", "AngularJS beats Angular"),
        ("fair share", "fair share"),
    ],
)
def test_known_terms_are_recased(source: str, expected: str) -> None:
    assert CasingNormalizer().apply(source) == expected


def test_casing_is_idempotent() -> None:
    normalizer = CasingNormalizer()
    text = "github, nodejs, react.js, api and apis with sql over aws"
    once = normalizer.apply(text)
    assert normalizer.apply(once) == once


def test_whole_words_only() -> None:
    assert CasingNormalizer().apply("guitar") == "guitar"


def test_disabled_normalizer_is_a_no_op() -> None:
    assert CasingNormalizer(enabled=False).apply("github") == "github"


def test_custom_rules_and_call_alias() -> None:
    normalizer = CasingNormalizer({"cvsmith": "CVSmith"})
    assert normalizer("made with cvsmith and github") == "made with CVSmith and github"


def test_urls_are_not_protected() -> None:
    assert CasingNormalizer().apply("https://github.com/me") == "https://GitHub.com/me"
