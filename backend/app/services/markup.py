import html
import re

TAG_RE = re.compile(r"<[^>]*>")


def html_to_text(markup: str) -> str:
    """Plain-text projection of rich text: tags dropped, entities decoded, whitespace kept."""
    return html.unescape(TAG_RE.sub("", markup))
