import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterator, List

from .errors import ResponseParseError


logger = logging.getLogger(__name__)


def _local(tag) -> str:
    # Drop "{namespace}" so plain and XHTML-namespaced responses read the same
    if not isinstance(tag, str):
        return ""
    return tag.rsplit('}', 1)[-1]


def _classes(elem: ET.Element) -> List[str]:
    return (elem.get('class') or '').split()


def _own_spans(elem: ET.Element) -> Iterator[ET.Element]:
    # Spans of nested <li> elements belong to those items, not this one
    for child in elem:
        tag = _local(child.tag)
        if tag == 'li':
            continue
        if tag == 'span':
            yield child
        yield from _own_spans(child)


def parse_list_items(xml_text: str, li_class: str) -> List[Dict[str, Any]]:
    """
    Extract the `<li class="...">` items of an RWS XHTML response.

    Each item becomes a dict mapping span class -> span text (empty string for
    an empty span), plus 'title' from the li's title attribute when present.
    A span class that repeats within one item is collected into a list.
    Items are returned in document order.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ResponseParseError(f"Malformed RWS response: {e}") from e

    items: List[Dict[str, Any]] = []
    for li in root.iter():
        if _local(li.tag) != 'li' or li_class not in _classes(li):
            continue
        fields: Dict[str, Any] = {}
        title = li.get('title')
        if title is not None:
            fields['title'] = title
        for span in _own_spans(li):
            for cls in _classes(span):
                text = (span.text or '').strip()
                if cls in fields and cls != 'title':
                    existing = fields[cls]
                    if isinstance(existing, list):
                        existing.append(text)
                    else:
                        fields[cls] = [existing, text]
                else:
                    fields[cls] = text
        items.append(fields)

    logger.debug(f"Extracted {len(items)} '{li_class}' items")
    return items


def parse_single_item(xml_text: str, li_class: str) -> Dict[str, Any]:
    """Like parse_list_items, for resources that report exactly one item."""
    items = parse_list_items(xml_text, li_class)
    if not items:
        raise ResponseParseError(f"No '{li_class}' item in RWS response")
    if len(items) > 1:
        logger.warning(f"Expected one '{li_class}' item, got {len(items)}; using the first")
    return items[0]


def collect_span_texts(xml_text: str, li_class: str, span_class: str) -> List[str]:
    """All texts of `span_class` across the `li_class` items, in document order."""
    texts: List[str] = []
    for item in parse_list_items(xml_text, li_class):
        value = item.get(span_class)
        if value is None:
            continue
        if isinstance(value, list):
            texts.extend(value)
        else:
            texts.append(value)
    return texts
