"""Canonical capitalisation of common technical terms.

Rules are applied in declaration order over the progressively rewritten
string, so later rules see the output of earlier ones. Matching is whole-word
and case-insensitive.

Known limitation: URLs and other non-prose spans are not excluded, so a link
target such as ``https://github.com/me`` becomes ``https://GitHub.com/me``.
Browsers treat host names case-insensitively, but paths are not protected.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import re


__all__ = ["CASING_RULES", "CasingNormalizer"]


CASING_RULES: dict[str, str] = {
    "github": "GitHub",
    "linkedin": "LinkedIn",
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "react.js": "React.js",
    "vue.js": "Vue.js",
    "node.js": "Node.js",
    "html5": "HTML5",
    "css3": "CSS3",
    "api": "API",
    "apis": "APIs",
    "ui": "UI",
    "ux": "UX",
    "cli": "CLI",
    "sql": "SQL",
    "nosql": "NoSQL",
    "php": "PHP",
    "graphql": "GraphQL",
    "restful": "RESTful",
    "oauth": "OAuth",
    "sass": "Sass",
    "scss": "SCSS",
    "redux": "Redux",
    "webpack": "Webpack",
    "tailwindcss": "Tailwind CSS",
    "bootstrap": "Bootstrap",
    "json": "JSON",
    "saas": "SaaS",
    "paas": "PaaS",
    "iaas": "IaaS",
    "iot": "IoT",
    "ai": "AI",
    "ml": "ML",
    "ar": "AR",
    "vr": "VR",
    "aws": "AWS",
    "gcp": "GCP",
    "azure": "Azure",
    "git": "Git",
    "npm": "npm",
    "mysql": "MySQL",
    "css": "CSS",
    "html": "HTML",
    "angularjs": "AngularJS",
    "angular": "Angular",
    "react": "React",
    "nodejs": "Node.js",
    "vue": "Vue",
}


def _compile(term: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)


class CasingNormalizer:
    """Rewrite known terms to their canonical casing."""

    def __init__(
        self,
        rules: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        entries = rules.items() if isinstance(rules, Mapping) else rules
        pairs = list(entries) if entries is not None else list(CASING_RULES.items())
        self.enabled = enabled
        self._rules: list[tuple[re.Pattern[str], str]] = [
            (_compile(term), canonical) for term, canonical in pairs
        ]

    def apply(self, text: str) -> str:
        if not self.enabled or not text:
            return text
        result = text
        for pattern, canonical in self._rules:
            result = pattern.sub(lambda _match, value=canonical: value, result)
        return result

    __call__ = apply
