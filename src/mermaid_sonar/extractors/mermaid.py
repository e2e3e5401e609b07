"""Line-oriented parser for Mermaid flowchart, state and class diagrams.

This is a heuristic parser, not a Mermaid grammar.  It recognises the
header, node declarations, edges and block structure well enough to build a
:class:`~mermaid_sonar.diagram.Diagram`.  Structural problems are recorded
in ``Diagram.parse_errors``; parsing never raises on diagram text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from mermaid_sonar.diagram import DIRECTIONS, Diagram, Edge, Node

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

START_STATE = "__start__"
END_STATE = "__end__"
PSEUDO_STATE_LABEL = "[*]"

# Valid Mermaid diagram kinds this parser does not model.
OTHER_DIAGRAM_KEYWORDS: frozenset[str] = frozenset(
    {
        "sequencediagram",
        "erdiagram",
        "gantt",
        "pie",
        "journey",
        "gitgraph",
        "mindmap",
        "timeline",
        "quadrantchart",
        "requirementdiagram",
        "sankey-beta",
        "xychart-beta",
        "block-beta",
        "c4context",
        "architecture-beta",
    }
)

FLOW_KEYWORD_STATEMENTS: frozenset[str] = frozenset(
    {"style", "classdef", "class", "click", "linkstyle"}
)

_FLOW_HEADER_RE = re.compile(r"^(graph|flowchart)\b\s*([A-Za-z]+)?\s*;?\s*$", re.IGNORECASE)
_STATE_HEADER_RE = re.compile(r"^statediagram(?:-v2)?\b", re.IGNORECASE)
_CLASS_HEADER_RE = re.compile(r"^classdiagram(?:-v2)?\b", re.IGNORECASE)
_DIRECTION_RE = re.compile(r"^direction\s+([A-Za-z]+)\s*$", re.IGNORECASE)

_ID_RE = re.compile(r"\w+")
_CLASS_SUFFIX_RE = re.compile(r":::[\w-]+")
_LINK_RE = re.compile(
    r"""(?P<bi><)?
        (?P<link>-{2,}>|={2,}>|-\.+->|-{3,}|={3,}|-\.+-|-{2,}[ox](?=\s|$)|={2,}[ox](?=\s|$))
        (?:\s*\|(?P<label>[^|]*)\|)?""",
    re.VERBOSE,
)
_TEXT_LINK_RE = re.compile(
    r"(?P<bi><)?(?:--|==|-\.)\s+(?P<label>[^-=.|]+?)\s+"
    r"(?P<link>-{2,}>|={2,}>|\.-+>|-{3,}|={3,}|\.-+)"
)
_BAD_ARROW_RE = re.compile(r"[-=]>")

_STATE_REF = r"\[\*\]|[\w.]+"
_STATE_EDGE_RE = re.compile(
    rf"^(?P<src>{_STATE_REF})\s*(?P<arrow>-->|->)\s*(?P<dst>{_STATE_REF})\s*(?::\s*(?P<label>.*))?$"
)
_STATE_ALIAS_RE = re.compile(r'^state\s+"(?P<label>[^"]*)"\s+as\s+(?P<id>\w+)\s*(?P<open>\{)?\s*$')
_STATE_DECL_RE = re.compile(r"^state\s+(?P<id>\w+)\s*(?:<<\w+>>)?\s*(?P<open>\{)?\s*$")
_STATE_DESC_RE = re.compile(r"^(?P<id>\w+)\s*:\s*(?P<label>.+)$")

_CLASS_RELATION_RE = re.compile(
    r'^(?P<src>\w+)\s*(?:"[^"]*"\s*)?'
    r"(?P<arrow><\|--|\*--|o--|<--|<\.\.|--\|>|--\*|--o|-->|\.\.\|>|\.\.>|<\|\.\.|--|\.\.)"
    r'\s*(?:"[^"]*"\s*)?(?P<dst>\w+)\s*(?::\s*(?P<label>.*))?$'
)
_CLASS_DECL_RE = re.compile(r"^class\s+(?P<id>\w+)(?P<generic>~[^~]*~)?\s*(?P<open>\{)?\s*$")
_CLASS_MEMBER_RE = re.compile(r"^(?P<id>\w+)\s*:\s*.+$")

_BRACKET_PAIRS = {"]": "[", ")": "(", "}": "{"}

# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


@dataclass
class _Builder:
    """Mutable accumulator used while parsing one diagram."""

    start_line: int
    labels: dict[str, str] = field(default_factory=dict)
    explicit: set[str] = field(default_factory=set)
    edges: list[Edge] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def node(self, node_id: str, label: str | None = None) -> None:
        if label is not None and node_id not in self.explicit:
            self.labels[node_id] = label
            self.explicit.add(node_id)
        elif node_id not in self.labels:
            self.labels[node_id] = node_id

    def edge(
        self, source: str, target: str, label: str | None = None, *, bidirectional: bool = False
    ) -> None:
        self.edges.append(
            Edge(source=source, target=target, label=label or None, bidirectional=bidirectional)
        )

    def error(self, offset: int, message: str) -> None:
        self.errors.append(f"line {self.start_line + offset}: {message}")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _strip_label(raw: str) -> str:
    label = raw.strip("[](){}<>/\\").strip()
    if len(label) >= 2 and label[0] == label[-1] == '"':
        label = label[1:-1]
    return label.strip("`").strip()


def _bracket_problem(text: str) -> str | None:
    """Describe the first bracket imbalance in *text*, ignoring quoted text."""
    stack: list[str] = []
    in_quote = False
    in_pipe = False
    prev = ""
    for ch in text:
        if ch == '"':
            in_quote = not in_quote
        elif in_quote:
            pass
        elif ch == "|" and not stack:
            in_pipe = not in_pipe
        elif in_pipe:
            pass
        elif ch in "[({":
            stack.append(ch)
        elif ch == ">" and not stack and (prev.isalnum() or prev == "_"):
            # asymmetric node shape: A>label]
            stack.append("[")
        elif ch in _BRACKET_PAIRS:
            if not stack or stack[-1] != _BRACKET_PAIRS[ch]:
                return f"unexpected '{ch}'"
            stack.pop()
        prev = ch
    if in_quote:
        return 'unclosed \'"\''
    if stack:
        return f"unclosed '{stack[-1]}'"
    return None


def _split_statements(line: str) -> list[str]:
    """Split on ``;`` outside quotes and brackets."""
    parts: list[str] = []
    depth = 0
    in_quote = False
    current: list[str] = []
    for ch in line:
        if ch == '"':
            in_quote = not in_quote
        elif not in_quote:
            if ch in "[({":
                depth += 1
            elif ch in "])}" and depth:
                depth -= 1
            elif ch == ";" and depth == 0:
                parts.append("".join(current).strip())
                current = []
                continue
        current.append(ch)
    parts.append("".join(current).strip())
    return [part for part in parts if part]


def _body_lines(source: str) -> list[tuple[int, str]]:
    """Non-empty, non-comment lines with their 0-based offsets.

    YAML front matter (``---`` ... ``---``) and ``%%`` comments/directives
    are skipped.
    """
    raw = source.split("\n")
    lines: list[tuple[int, str]] = []
    idx = 0
    first = next((i for i, line in enumerate(raw) if line.strip()), None)
    if first is not None and raw[first].strip() == "---":
        closing = next(
            (i for i in range(first + 1, len(raw)) if raw[i].strip() == "---"), None
        )
        if closing is not None:
            idx = closing + 1
    for offset in range(idx, len(raw)):
        text = raw[offset].strip()
        if not text or text.startswith("%%"):
            continue
        lines.append((offset, text))
    return _split_header(lines)


def _split_header(lines: list[tuple[int, str]]) -> list[tuple[int, str]]:
    """Move statements after ``;`` on the header line into the body.

    ``graph LR; A-->B`` becomes the header ``graph LR`` and the body
    statement ``A-->B``, both on the header's line.
    """
    if not lines:
        return lines
    offset, header = lines[0]
    parts = _split_statements(header)
    if len(parts) < 2:
        return lines
    return [(offset, part) for part in parts] + lines[1:]


# ---------------------------------------------------------------------------
# Flowchart / graph
# ---------------------------------------------------------------------------


def _parse_node_ref(
    text: str, pos: int, builder: _Builder, offset: int
) -> tuple[str | None, int]:
    """Parse ``id`` plus an optional shape/label starting at *pos*."""
    while pos < len(text) and text[pos].isspace():
        pos += 1
    match = _ID_RE.match(text, pos)
    if match is None:
        return None, pos
    node_id = match.group()
    pos = match.end()
    label: str | None = None

    if pos < len(text) and text[pos] in "[({>":
        opener = text[pos]
        closer = "]" if opener in "[>" else {"(": ")", "{": "}"}[opener]
        depth = 1 if opener == ">" else 0
        idx = pos + 1 if opener == ">" else pos
        in_quote = False
        end = None
        while idx < len(text):
            ch = text[idx]
            if ch == '"':
                in_quote = not in_quote
            elif not in_quote:
                if ch == opener and opener != ">":
                    depth += 1
                elif ch == closer:
                    depth -= 1
                    if depth == 0:
                        end = idx
                        break
            idx += 1
        if end is None:
            builder.error(offset, f"unclosed '{opener}' in node '{node_id}'")
            label = _strip_label(text[pos:])
            pos = len(text)
        else:
            label = _strip_label(text[pos : end + 1])
            pos = end + 1

    class_suffix = _CLASS_SUFFIX_RE.match(text, pos)
    if class_suffix is not None:
        pos = class_suffix.end()

    builder.node(node_id, label)
    return node_id, pos


def _parse_group(
    text: str, pos: int, builder: _Builder, offset: int
) -> tuple[list[str], int]:
    """Parse ``A & B & C``."""
    group: list[str] = []
    node_id, pos = _parse_node_ref(text, pos, builder, offset)
    if node_id is None:
        return group, pos
    group.append(node_id)
    while True:
        cursor = pos
        while cursor < len(text) and text[cursor].isspace():
            cursor += 1
        if cursor >= len(text) or text[cursor] != "&":
            return group, pos
        node_id, next_pos = _parse_node_ref(text, cursor + 1, builder, offset)
        if node_id is None:
            return group, pos
        group.append(node_id)
        pos = next_pos


def _parse_flow_statement(text: str, builder: _Builder, offset: int) -> None:
    group, pos = _parse_group(text, 0, builder, offset)
    if not group:
        return
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return
        match = _LINK_RE.match(text, pos) or _TEXT_LINK_RE.match(text, pos)
        if match is not None:
            label = match.group("label")
            bidirectional = bool(match.group("bi")) and match.group("link")[-1] in ">ox"
            pos = match.end()
        else:
            bad = _BAD_ARROW_RE.match(text, pos)
            if bad is None:
                return
            builder.error(offset, f"invalid arrow '{bad.group()}', use '-->' instead of '->'")
            label = None
            bidirectional = False
            pos = bad.end()

        targets, pos = _parse_group(text, pos, builder, offset)
        if not targets:
            builder.error(offset, "edge is missing a target node")
            return
        for source in group:
            for target in targets:
                builder.edge(
                    source, target, label.strip() if label else None, bidirectional=bidirectional
                )
        group = targets


def _parse_flowchart(lines: list[tuple[int, str]], builder: _Builder) -> None:
    depth = 0
    for offset, text in lines:
        lowered = text.lower()
        if lowered == "end":
            if depth == 0:
                builder.error(offset, "'end' without a matching 'subgraph'")
            else:
                depth -= 1
            continue
        if lowered == "subgraph" or lowered.startswith("subgraph "):
            depth += 1
            problem = _bracket_problem(text)
            if problem:
                builder.error(offset, f"unbalanced brackets: {problem}")
            continue
        if _DIRECTION_RE.match(text):
            continue
        first_word = lowered.split(None, 1)[0]
        if first_word in FLOW_KEYWORD_STATEMENTS and not _LINK_RE.search(text):
            continue

        problem = _bracket_problem(text)
        if problem:
            builder.error(offset, f"unbalanced brackets: {problem}")
        for statement in _split_statements(text):
            _parse_flow_statement(statement, builder, offset)

    if depth > 0:
        builder.error(
            lines[-1][0] if lines else 0,
            f"{depth} 'subgraph' block(s) not closed with 'end'",
        )


# ---------------------------------------------------------------------------
# State diagrams
# ---------------------------------------------------------------------------


def _state_ref(ref: str, *, as_source: bool, builder: _Builder) -> str:
    if ref == "[*]":
        node_id = START_STATE if as_source else END_STATE
        builder.node(node_id, PSEUDO_STATE_LABEL)
        return node_id
    builder.node(ref)
    return ref


def _parse_state(
    lines: list[tuple[int, str]], builder: _Builder
) -> str | None:
    depth = 0
    direction: str | None = None
    in_note = False
    for offset, text in lines:
        lowered = text.lower()
        if in_note:
            if lowered == "end note":
                in_note = False
            continue
        if lowered.startswith("note "):
            in_note = ":" not in text
            continue
        if text == "}":
            if depth == 0:
                builder.error(offset, "unexpected '}' without an open state block")
            else:
                depth -= 1
            continue
        if text == "--":
            continue
        direction_match = _DIRECTION_RE.match(text)
        if direction_match:
            value = direction_match.group(1).upper()
            if depth == 0 and value in DIRECTIONS:
                direction = value
            continue
        if lowered.startswith(("classdef ", "class ", "style ")):
            continue

        edge = _STATE_EDGE_RE.match(text)
        if edge is not None:
            if edge.group("arrow") == "->":
                builder.error(offset, "invalid arrow '->', use '-->' instead of '->'")
            source = _state_ref(edge.group("src"), as_source=True, builder=builder)
            target = _state_ref(edge.group("dst"), as_source=False, builder=builder)
            builder.edge(source, target, (edge.group("label") or "").strip())
            continue

        alias = _STATE_ALIAS_RE.match(text)
        declared = alias or _STATE_DECL_RE.match(text)
        if declared is not None:
            label = alias.group("label") if alias else None
            builder.node(declared.group("id"), label)
            if declared.group("open"):
                depth += 1
            continue

        description = _STATE_DESC_RE.match(text)
        if description is not None:
            builder.node(description.group("id"), description.group("label").strip())
            continue

        problem = _bracket_problem(text)
        if problem:
            builder.error(offset, f"unbalanced brackets: {problem}")

    if depth > 0:
        builder.error(lines[-1][0], f"{depth} state block(s) not closed with '}}'")
    return direction


# ---------------------------------------------------------------------------
# Class diagrams
# ---------------------------------------------------------------------------


def _parse_class(
    lines: list[tuple[int, str]], builder: _Builder
) -> str | None:
    in_body = False
    body_offset = 0
    direction: str | None = None
    for offset, text in lines:
        if in_body:
            if text.startswith("}"):
                in_body = False
            continue
        direction_match = _DIRECTION_RE.match(text)
        if direction_match:
            value = direction_match.group(1).upper()
            if value in DIRECTIONS:
                direction = value
            continue
        lowered = text.lower()
        if lowered.startswith(("note ", "classdef ", "style ", "cssclass ", "link ", "callback ")):
            continue
        if text.startswith("<<"):
            continue

        declared = _CLASS_DECL_RE.match(text)
        if declared is not None:
            name = declared.group("id")
            generic = declared.group("generic") or ""
            builder.node(name, f"{name}{generic}" if generic else None)
            if declared.group("open"):
                in_body = True
                body_offset = offset
            continue

        relation = _CLASS_RELATION_RE.match(text)
        if relation is not None:
            builder.node(relation.group("src"))
            builder.node(relation.group("dst"))
            builder.edge(
                relation.group("src"),
                relation.group("dst"),
                (relation.group("label") or "").strip(),
            )
            continue

        member = _CLASS_MEMBER_RE.match(text)
        if member is not None:
            builder.node(member.group("id"))
            continue

        if _BAD_ARROW_RE.search(text) and "-->" not in text:
            builder.error(offset, "invalid arrow '->', use '-->' instead of '->'")

    if in_body:
        builder.error(body_offset, "class body '{' not closed with '}'")
    return direction


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def detect_type(source: str) -> str:
    """Diagram type from the header line, ``"unknown"`` if not modelled."""
    lines = _body_lines(source)
    if not lines:
        return "unknown"
    header = lines[0][1]
    flow = _FLOW_HEADER_RE.match(header)
    if flow:
        return flow.group(1).lower()
    if _STATE_HEADER_RE.match(header):
        return "state"
    if _CLASS_HEADER_RE.match(header):
        return "class"
    return "unknown"


def parse_diagram(source: str, file_path: str, start_line: int = 1) -> Diagram:
    """Parse Mermaid *source* into a :class:`Diagram`.

    *start_line* is the 1-based line of the first diagram line in
    *file_path*; parse errors cite absolute line numbers from it.
    """
    builder = _Builder(start_line=start_line)
    lines = _body_lines(source)
    diagram_type = "unknown"
    direction: str | None = None

    if not lines:
        builder.error(0, "empty diagram: no diagram type declared")
    else:
        header_offset, header = lines[0]
        body = lines[1:]
        flow = _FLOW_HEADER_RE.match(header)
        if flow:
            diagram_type = flow.group(1).lower()
            token = flow.group(2)
            if token:
                if token.upper() in DIRECTIONS:
                    direction = token.upper()
                else:
                    builder.error(header_offset, f"unknown direction '{token}'")
            _parse_flowchart(body, builder)
        elif _STATE_HEADER_RE.match(header):
            diagram_type = "state"
            direction = _parse_state(body, builder)
        elif _CLASS_HEADER_RE.match(header):
            diagram_type = "class"
            direction = _parse_class(body, builder)
        elif header.split(None, 1)[0].lower() not in OTHER_DIAGRAM_KEYWORDS:
            word = header.split(None, 1)[0]
            builder.error(header_offset, f"unrecognized diagram type '{word}'")

    return Diagram(
        type=diagram_type,
        direction=direction,
        nodes=tuple(Node(id=node_id, label=label) for node_id, label in builder.labels.items()),
        edges=tuple(builder.edges),
        source_text=source,
        file_path=file_path,
        start_line=start_line,
        parse_errors=tuple(builder.errors),
    )
