"""Single-pass tokenizer for the résumé markup dialect.

The lexer turns source text into typed blocks and inline spans. Each span is
rendered exactly once by the transformer, so markup produced for one
directive is never scanned again by another rule.

Block grammar

`# text`, `## text`, `### text`
: Headings of level 1 to 3.

`- text`
: List items. Only directly adjacent item lines share a list.

`\\newpage`
: Page break. A break inside a line splits the line around it.

`\\\\` or `\\\\[Npx]`
: Vertical spacer on a line of its own (10px by default).

Inline grammar

`**text**`, `*text*`, `[text](href)`
: Strong, emphasis and links.

`\\textbf{}`, `\\textit{}`, `\\underline{}`, `\\textsc{}`
: Strong, emphasis, underline and small caps.

`\\cvtag{text}`, `\\cvskill{name}{percent}`, `\\daterange{start}{end}`
: Badge, skill row and date range.

Anything malformed (unbalanced braces, unknown directives, unclosed
emphasis, a non-numeric skill percentage) stays literal text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re


__all__ = [
    "DIRECTIVE_ARITY",
    "Block",
    "BlockKind",
    "Span",
    "SpanKind",
    "tokenize",
    "tokenize_inline",
]


class SpanKind(Enum):
    LITERAL = "literal"
    STRONG = "strong"
    EMPHASIS = "emphasis"
    UNDERLINE = "underline"
    SMALL_CAPS = "small_caps"
    TAG = "tag"
    SKILL = "skill"
    DATE_RANGE = "date_range"
    LINK = "link"


class BlockKind(Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    PAGE_BREAK = "page_break"
    SPACER = "spacer"
    SKILLS = "skills"


@dataclass(slots=True)
class Span:
    """Inline token. Container kinds keep their parsed content in ``children``."""

    kind: SpanKind
    text: str = ""
    children: list[Span] = field(default_factory=list)
    parts: tuple[list[Span], ...] = ()
    percent: float | None = None
    href: str | None = None


@dataclass(slots=True)
class Block:
    kind: BlockKind
    spans: list[Span] = field(default_factory=list)
    items: list[list[Span]] = field(default_factory=list)
    level: int = 0
    height: int = 0


DIRECTIVE_ARITY: dict[str, int] = {
    "textbf": 1,
    "textit": 1,
    "underline": 1,
    "textsc": 1,
    "cvtag": 1,
    "cvskill": 2,
    "daterange": 2,
}

_WRAPPING_DIRECTIVES: dict[str, SpanKind] = {
    "textbf": SpanKind.STRONG,
    "textit": SpanKind.EMPHASIS,
    "underline": SpanKind.UNDERLINE,
    "textsc": SpanKind.SMALL_CAPS,
    "cvtag": SpanKind.TAG,
}

_ESCAPABLE = set("\\*{}[]()#-_`")
_DIRECTIVE_NAME = re.compile(r"[A-Za-z]+")
_PERCENT = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*%?\s*$")

_HEADING = re.compile(r"^ {0,3}(#{1,3})[ \t]+(.*?)[ \t]*$")
_LIST_ITEM = re.compile(r"^\s*-[ \t]+(.*?)\s*$")
_SPACER = re.compile(r"^\s*\\\\(?:\[(\d+)px\])?\s*$")
_NEWPAGE = re.compile(r"\\newpage(?![A-Za-z])")

DEFAULT_SPACER_HEIGHT = 10

_PAGE_BREAK_LINE = object()


def _read_group(source: str, pos: int) -> tuple[str, int] | None:
    """Read a brace-balanced ``{...}`` group starting at ``pos``."""
    if pos >= len(source) or source[pos] != "{":
        return None
    depth = 0
    index = pos
    while index < len(source):
        char = source[index]
        if char == "\\" and index + 1 < len(source) and source[index + 1] in "{}":
            index += 2
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return source[pos + 1 : index], index + 1
        index += 1
    return None


def _skip_group(source: str, pos: int) -> int:
    group = _read_group(source, pos)
    return group[1] if group is not None else pos + 1


def _find_closing(source: str, start: int, delimiter: str) -> int | None:
    """Return the index of the closing emphasis delimiter, or None."""
    index = start
    length = len(source)
    while index < length:
        char = source[index]
        if char == "\\":
            index += 2
            continue
        if char == "{":
            index = _skip_group(source, index)
            continue
        if source.startswith(delimiter, index):
            preceded_by_space = index == start or source[index - 1].isspace()
            if delimiter == "*" and source.startswith("**", index):
                nested = _find_closing(source, index + 2, "**")
                if nested is not None:
                    index = nested + 2
                    continue
            if not preceded_by_space:
                return index
        index += 1
    return None


def _find_bracket(source: str, start: int) -> int | None:
    depth = 0
    index = start
    while index < len(source):
        char = source[index]
        if char == "\\":
            index += 2
            continue
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return None


class _InlineLexer:
    def __init__(self, source: str, *, directives: bool) -> None:
        self.source = source
        self.directives = directives
        self.spans: list[Span] = []
        self.buffer: list[str] = []

    def _flush(self) -> None:
        if self.buffer:
            self.spans.append(Span(SpanKind.LITERAL, text="".join(self.buffer)))
            self.buffer.clear()

    def _emit(self, span: Span) -> None:
        self._flush()
        self.spans.append(span)

    def _nested(self, source: str) -> list[Span]:
        return tokenize_inline(source, directives=self.directives)

    def run(self) -> list[Span]:
        source = self.source
        index = 0
        while index < len(source):
            char = source[index]
            consumed: int | None = None
            if char == "\\":
                consumed = self._backslash(index)
            elif char == "*":
                consumed = self._emphasis(index)
            elif char == "[":
                consumed = self._link(index)
            if consumed is None:
                self.buffer.append(char)
                index += 1
            else:
                index = consumed
        self._flush()
        return self.spans

    def _backslash(self, index: int) -> int | None:
        source = self.source
        following = source[index + 1 : index + 2]
        if following and following in _ESCAPABLE:
            self.buffer.append(following)
            return index + 2
        if not self.directives:
            return None
        match = _DIRECTIVE_NAME.match(source, index + 1)
        if match is None:
            return None
        name = match.group(0)
        arity = DIRECTIVE_ARITY.get(name)
        if arity is None:
            self.buffer.append(source[index : match.end()])
            return match.end()

        arguments: list[str] = []
        cursor = match.end()
        for _ in range(arity):
            group = _read_group(source, cursor)
            if group is None:
                break
            arguments.append(group[0])
            cursor = group[1]

        span = self._directive(name, arguments) if len(arguments) == arity else None
        if span is None:
            self.buffer.append(source[index : match.end()])
            return match.end()
        self._emit(span)
        return cursor

    def _directive(self, name: str, arguments: list[str]) -> Span | None:
        wrapping = _WRAPPING_DIRECTIVES.get(name)
        if wrapping is SpanKind.TAG and not arguments[0].strip():
            return None
        if wrapping is not None:
            return Span(wrapping, children=self._nested(arguments[0]))
        if name == "cvskill":
            match = _PERCENT.match(arguments[1])
            if match is None:
                return None
            percent = max(0.0, min(100.0, float(match.group(1))))
            return Span(SpanKind.SKILL, children=self._nested(arguments[0].strip()), percent=percent)
        if name == "daterange":
            start, end = (self._nested(argument.strip()) for argument in arguments)
            return Span(SpanKind.DATE_RANGE, parts=(start, end))
        return None

    def _emphasis(self, index: int) -> int | None:
        source = self.source
        delimiter = "**" if source.startswith("**", index) else "*"
        content_start = index + len(delimiter)
        if content_start >= len(source) or source[content_start].isspace():
            return None
        closing = _find_closing(source, content_start, delimiter)
        if closing is None or closing == content_start:
            return None
        kind = SpanKind.STRONG if delimiter == "**" else SpanKind.EMPHASIS
        self._emit(Span(kind, children=self._nested(source[content_start:closing])))
        return closing + len(delimiter)

    def _link(self, index: int) -> int | None:
        source = self.source
        close = _find_bracket(source, index)
        if close is None or not source.startswith("(", close + 1):
            return None
        end = source.find(")", close + 2)
        if end < 0:
            return None
        href = source[close + 2 : end].strip()
        if not href or any(char.isspace() for char in href):
            return None
        self._emit(Span(SpanKind.LINK, children=self._nested(source[index + 1 : close]), href=href))
        return end + 1


def tokenize_inline(source: str, *, directives: bool = True) -> list[Span]:
    """Tokenize inline markup into spans."""
    return _InlineLexer(source, directives=directives).run()


def _split_page_breaks(lines: list[str]) -> list[object]:
    expanded: list[object] = []
    for line in lines:
        segments = _NEWPAGE.split(line)
        for position, segment in enumerate(segments):
            if position:
                expanded.append(_PAGE_BREAK_LINE)
            if position == 0 or segment.strip():
                expanded.append(segment)
    return expanded


def _is_skill_only(spans: list[Span]) -> bool:
    has_skill = False
    for span in spans:
        if span.kind is SpanKind.SKILL:
            has_skill = True
        elif span.kind is not SpanKind.LITERAL or span.text.strip():
            return False
    return has_skill


class _BlockLexer:
    def __init__(self, *, directives: bool) -> None:
        self.directives = directives
        self.blocks: list[Block] = []
        self.paragraph: list[str] = []
        self.list_items: list[list[Span]] | None = None

    def _inline(self, text: str) -> list[Span]:
        return tokenize_inline(text, directives=self.directives)

    def flush_paragraph(self) -> None:
        if not self.paragraph:
            return
        text = "\n".join(self.paragraph).strip()
        self.paragraph = []
        if not text:
            return
        spans = self._inline(text)
        if _is_skill_only(spans):
            skills = [span for span in spans if span.kind is SpanKind.SKILL]
            self.blocks.append(Block(BlockKind.SKILLS, spans=skills))
        else:
            self.blocks.append(Block(BlockKind.PARAGRAPH, spans=spans))

    def flush_list(self) -> None:
        if self.list_items is not None:
            self.blocks.append(Block(BlockKind.LIST, items=self.list_items))
            self.list_items = None

    def flush(self) -> None:
        self.flush_paragraph()
        self.flush_list()

    def feed(self, line: object) -> None:
        if line is _PAGE_BREAK_LINE:
            self.flush()
            self.blocks.append(Block(BlockKind.PAGE_BREAK))
            return
        assert isinstance(line, str)
        if not line.strip():
            self.flush()
            return

        heading = _HEADING.match(line)
        if heading is not None and heading.group(2):
            self.flush()
            level = len(heading.group(1))
            self.blocks.append(
                Block(BlockKind.HEADING, spans=self._inline(heading.group(2)), level=level)
            )
            return

        item = _LIST_ITEM.match(line)
        if item is not None:
            self.flush_paragraph()
            if self.list_items is None:
                self.list_items = []
            self.list_items.append(self._inline(item.group(1)))
            return

        if self.directives:
            spacer = _SPACER.match(line)
            if spacer is not None:
                self.flush()
                height = int(spacer.group(1)) if spacer.group(1) else DEFAULT_SPACER_HEIGHT
                self.blocks.append(Block(BlockKind.SPACER, height=height))
                return

        self.flush_list()
        self.paragraph.append(line)


def tokenize(source: str, *, directives: bool = True) -> list[Block]:
    """Tokenize a whole document into blocks."""
    lines = source.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    stream: list[object] = _split_page_breaks(lines) if directives else list(lines)
    lexer = _BlockLexer(directives=directives)
    for line in stream:
        lexer.feed(line)
    lexer.flush()
    return lexer.blocks
