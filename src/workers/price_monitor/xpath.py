"""
Selector hints — CSS or a small XPath subset
=============================================
Users may store either a CSS selector or an XPath-like string for a
product's price. XPath strings (leading "/" or "(") are translated to an
equivalent CSS query and evaluated with BeautifulSoup/soupsieve.

Supported XPath subset:
  - "/" (child) and "//" (descendant) steps, element names and "*"
  - [@attr='v'], [@attr], positional [n]
  - [contains(@attr, 'v')], [contains(text(), 'v')]
  - a trailing /text() or /@attr step
  - (expr)[n] to pick the n-th match of the whole expression

Anything else (axes such as ancestor::, other functions, unions) fails
closed: resolve() returns "" and the extraction cascade takes over.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from workers.price_monitor.parsing import node_text

logger = logging.getLogger(__name__)

_WRAPPED = re.compile(r"^\((?P<inner>.+)\)\s*\[\s*(?P<index>\d+)\s*\]$", re.DOTALL)
_STEP = re.compile(r"^(?P<name>\*|[A-Za-z_][\w.-]*)(?P<predicates>(?:\[.*\])*)$")
_ATTR_EQUALS = re.compile(r"""^@(?P<attr>[\w:.-]+)\s*=\s*(?P<q>['"])(?P<value>.*)(?P=q)$""")
_ATTR_PRESENT = re.compile(r"^@(?P<attr>[\w:.-]+)$")
_POSITION = re.compile(r"^\d+$")
_CONTAINS = re.compile(
    r"""^contains\(\s*(?P<target>@[\w:.-]+|text\(\)|\.)\s*,\s*(?P<q>['"])(?P<value>.*)(?P=q)\s*\)$"""
)
_ATTRIBUTE_STEP = re.compile(r"^@(?P<attr>[\w:.-]+)$")


class UnsupportedPathExpression(ValueError):
    """Raised when an XPath construct is outside the supported subset."""


@dataclass(frozen=True, slots=True)
class PathQuery:
    """A translated selector hint."""

    css: str
    attribute: str | None = None   # trailing /@attr step
    index: int | None = None       # 1-based, from (expr)[n]


def is_path_expression(selector: str) -> bool:
    """XPath hints start with "/" or "("; anything else is treated as CSS."""
    return selector.lstrip().startswith(("/", "("))


def _split_steps(path: str) -> list[tuple[str, str]]:
    """Split a location path into (separator, step) pairs, respecting [] and quotes."""
    steps: list[tuple[str, str]] = []
    depth = 0
    quote: str | None = None
    separator = ""
    current: list[str] = []
    i = 0

    while i < len(path):
        char = path[i]
        if quote:
            if char == quote:
                quote = None
            current.append(char)
        elif char in ("'", '"'):
            quote = char
            current.append(char)
        elif char == "[":
            depth += 1
            current.append(char)
        elif char == "]":
            depth -= 1
            current.append(char)
        elif char == "/" and depth == 0:
            if current:
                steps.append((separator, "".join(current).strip()))
                current = []
                separator = ""
            separator += "/"
        else:
            current.append(char)
        i += 1

    if quote or depth:
        raise UnsupportedPathExpression(f"unbalanced expression: {path!r}")
    if current:
        steps.append((separator, "".join(current).strip()))
    elif separator:
        raise UnsupportedPathExpression(f"trailing separator: {path!r}")
    return steps


def _split_predicates(predicates: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    start = 0
    for i, char in enumerate(predicates):
        if quote:
            if char == quote:
                quote = None
        elif char in ("'", '"'):
            quote = char
        elif char == "[":
            if depth == 0:
                start = i + 1
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                parts.append(predicates[start:i].strip())
    return parts


def _css_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _predicate_to_css(predicate: str, name: str) -> str:
    match = _ATTR_EQUALS.match(predicate)
    if match:
        return f"[{match.group('attr')}={_css_string(match.group('value'))}]"
    match = _ATTR_PRESENT.match(predicate)
    if match:
        return f"[{match.group('attr')}]"
    if _POSITION.match(predicate):
        pseudo = "nth-child" if name == "*" else "nth-of-type"
        return f":{pseudo}({int(predicate)})"
    match = _CONTAINS.match(predicate)
    if match:
        target = match.group("target")
        if target.startswith("@"):
            return f"[{target[1:]}*={_css_string(match.group('value'))}]"
        return f":-soup-contains({_css_string(match.group('value'))})"
    raise UnsupportedPathExpression(f"unsupported predicate: [{predicate}]")


def xpath_to_css(expression: str) -> PathQuery:
    """
    Translate a supported XPath expression into a PathQuery.

    Raises:
        UnsupportedPathExpression: for anything outside the subset.
    """
    expression = expression.strip()
    index: int | None = None
    wrapped = _WRAPPED.match(expression)
    if wrapped:
        expression = wrapped.group("inner").strip()
        index = int(wrapped.group("index"))
        if index < 1:
            raise UnsupportedPathExpression("positions are 1-based")

    if "|" in expression or "::" in expression:
        raise UnsupportedPathExpression(f"unsupported axis or union: {expression!r}")

    steps = _split_steps(expression)
    if not steps:
        raise UnsupportedPathExpression("empty expression")

    attribute: str | None = None
    last_step = steps[-1][1]
    if last_step == "text()":
        steps = steps[:-1]
    elif _ATTRIBUTE_STEP.match(last_step):
        attribute = last_step[1:]
        steps = steps[:-1]
    if not steps:
        raise UnsupportedPathExpression(f"no element step in {expression!r}")

    compounds: list[str] = []
    for position, (separator, step) in enumerate(steps):
        match = _STEP.match(step)
        if match is None:
            raise UnsupportedPathExpression(f"unsupported step: {step!r}")
        name = match.group("name")
        compound = name + "".join(
            _predicate_to_css(p, name) for p in _split_predicates(match.group("predicates"))
        )

        if position == 0:
            # "/html" is anchored at the document root; "//div" and "div" are not
            compounds.append(compound + ":root" if separator == "/" else compound)
        elif separator == "/":
            compounds.append("> " + compound)
        elif separator == "//":
            compounds.append(compound)
        else:
            raise UnsupportedPathExpression(f"unsupported separator {separator!r}")

    return PathQuery(css=" ".join(compounds), attribute=attribute, index=index)


def resolve(soup: BeautifulSoup, selector: str) -> str:
    """
    Text (or attribute value) of the first node matching a CSS or XPath hint.

    Never raises for bad selectors: unsupported or invalid expressions
    resolve to "" so callers can fall back to their own cascade.
    """
    selector = selector.strip()
    if not selector:
        return ""

    try:
        query = xpath_to_css(selector) if is_path_expression(selector) else PathQuery(css=selector)
        nodes = soup.select(query.css)
    except (UnsupportedPathExpression, SelectorSyntaxError) as exc:
        logger.debug("Selector hint %r not usable: %s", selector, exc)
        return ""

    if query.index is not None:
        nodes = nodes[query.index - 1:query.index]
    if not nodes:
        return ""

    node = nodes[0]
    if query.attribute:
        value = node.get(query.attribute)
        if isinstance(value, list):
            value = " ".join(value)
        return value.strip() if value else ""
    return node_text(node, "")
