"""LaunchBox-style platform XML ⇄ untyped tree.

    <LaunchBox>
      <Game><ID>…</ID><Title>…</Title>…</Game>
      <AdditionalApplication>…</AdditionalApplication>
    </LaunchBox>

becomes ``{"LaunchBox": {"Game": [{...}], "AdditionalApplication": [{...}]}}``.
Every element directly under the root is collected into a list (even when
there is only one) and leaf elements become strings, so unknown fields
survive a load/save cycle.

Only element structure and text are kept. Attributes, and text sitting next
to child elements, are not; LaunchBox files use neither.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any

XML_DECLARATION = '<?xml version="1.0" standalone="yes"?>'


def _element_value(element: ET.Element) -> Any:
    if len(element) == 0:
        return element.text or ""
    value: dict[str, Any] = {}
    for child in element:
        child_value = _element_value(child)
        if child.tag in value:
            existing = value[child.tag]
            if not isinstance(existing, list):
                value[child.tag] = existing = [existing]
            existing.append(child_value)
        else:
            value[child.tag] = child_value
    return value


def xml_to_tree(text: str) -> dict[str, Any]:
    """Parse platform XML. Raises ``xml.etree.ElementTree.ParseError`` on malformed input."""
    root = ET.fromstring(text)
    body: dict[str, list[Any]] = {}
    for child in root:
        body.setdefault(child.tag, []).append(_element_value(child))
    return {root.tag: body}


def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _append_value(parent: ET.Element, tag: str, value: Any) -> None:
    if isinstance(value, list):
        for item in value:
            _append_value(parent, tag, item)
        return
    element = ET.SubElement(parent, tag)
    if isinstance(value, dict):
        for key, child in value.items():
            _append_value(element, key, child)
    else:
        element.text = _scalar_text(value)


def tree_to_xml(tree: dict[str, Any]) -> str:
    """Inverse of ``xml_to_tree``; the tree must have exactly one root key."""
    if len(tree) != 1:
        raise ValueError(f"Expected a single root element, got {len(tree)}")
    (root_tag, body), = tree.items()
    root = ET.Element(root_tag)
    if isinstance(body, dict):
        for tag, value in body.items():
            _append_value(root, tag, value)
    ET.indent(root, space="  ")
    return XML_DECLARATION + "\n" + ET.tostring(root, encoding="unicode") + "\n"
