"""
Pattern-based article extraction.

No DOM: every field is located with an ordered list of regular expressions
tried against the raw markup, first match wins. Container rules are
non-greedy, so a nested same-name tag (e.g. a <div class="content"> inside
another) ends the capture at the first closing </div>.
"""
from __future__ import annotations
import re, logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .schemas import ArticleRecord

log = logging.getLogger("uvicorn.error")

UNTITLED = "Untitled Article"
PREVIEW_CHARS = 200
PREVIEW_MARKER = "..."

_FLAGS = re.IGNORECASE

# the body of the block may contain "<" (e.g. `if (a < b)`) as long as it
# does not start the closing tag
_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", _FLAGS)
_STYLE_RE = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", _FLAGS)

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")
_BY_RE = re.compile(r"^by\s+", _FLAGS)


class EmptyExtraction(Exception):
    """Neither a title nor any body text could be found in the page."""

    def __init__(self, record: ArticleRecord):
        super().__init__("Could not extract article content from this URL")
        self.record = record


@dataclass(frozen=True)
class ExtractionRule:
    name: str
    pattern: re.Pattern

    def apply(self, html: str) -> Optional[str]:
        """Returns the first capture group, or None when the rule does not match."""
        m = self.pattern.search(html)
        if m and m.group(1):
            return m.group(1)
        return None


def _rule(name: str, pattern: str) -> ExtractionRule:
    return ExtractionRule(name, re.compile(pattern, _FLAGS))


def _container(tag: str, cls: Optional[str] = None) -> str:
    if cls is None:
        return rf"<{tag}[^>]*>([\s\S]*?)</{tag}>"
    return rf'<{tag}[^>]*class="[^"]*{cls}[^"]*"[^>]*>([\s\S]*?)</{tag}>'


def _inline(tag: str, cls: str) -> str:
    return rf'<{tag}[^>]*class="[^"]*{cls}[^"]*"[^>]*>([^<]+)</{tag}>'


TITLE_RULES: Tuple[ExtractionRule, ...] = (
    _rule("title", r"<title[^>]*>([^<]+)</title>"),
    _rule("h1.title", _inline("h1", "title")),
    _rule("h1.headline", _inline("h1", "headline")),
    _rule("h1", r"<h1[^>]*>([^<]+)</h1>"),
    _rule("og:title", r'<meta\s+property="og:title"\s+content="([^"]+)"'),
    _rule("meta.title", r'<meta\s+name="title"\s+content="([^"]+)"'),
)

AUTHOR_RULES: Tuple[ExtractionRule, ...] = (
    _rule("meta.author", r'<meta\s+name="author"\s+content="([^"]+)"'),
    _rule("span.author", _inline("span", "author")),
    _rule("div.author", _inline("div", "author")),
    _rule("p.byline", _inline("p", "byline")),
)

CONTENT_RULES: Tuple[ExtractionRule, ...] = (
    _rule("article", _container("article")),
    _rule("div.content", _container("div", "content")),
    _rule("div.article", _container("div", "article")),
    _rule("div.post", _container("div", "post")),
    _rule("main", _container("main")),
)

BODY_RULE = _rule("body", _container("body"))

# applied in a single pass so "&amp;lt;" becomes "&lt;", not "<"
ENTITIES: Tuple[Tuple[str, str], ...] = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)
_ENTITY_MAP = dict(ENTITIES)
_ENTITY_RE = re.compile("|".join(re.escape(k) for k, _ in ENTITIES))


def first_match(rules: Sequence[ExtractionRule], html: str) -> Optional[Tuple[str, str]]:
    """Tries rules in order; returns (rule name, capture) for the first hit."""
    for rule in rules:
        text = rule.apply(html)
        if text is not None:
            return rule.name, text
    return None


def strip_markup(html: str) -> str:
    """Drops <script> and <style> blocks together with their contents."""
    return _STYLE_RE.sub("", _SCRIPT_RE.sub("", html or ""))


def resolve_title(html: str) -> str:
    hit = first_match(TITLE_RULES, html)
    if not hit:
        return UNTITLED
    return hit[1].strip() or UNTITLED


def resolve_author(html: str) -> Optional[str]:
    hit = first_match(AUTHOR_RULES, html)
    if not hit:
        return None
    return _BY_RE.sub("", hit[1].strip()).strip() or None


def resolve_body(html: str) -> str:
    """HTML fragment most likely to hold the article text, "" if none."""
    hit = first_match(CONTENT_RULES, html)
    if hit:
        return hit[1]
    return BODY_RULE.apply(html) or ""


def decode_entities(text: str) -> str:
    return _ENTITY_RE.sub(lambda m: _ENTITY_MAP[m.group(0)], text)


def normalize_text(fragment: str) -> str:
    text = _TAG_RE.sub(" ", fragment or "")
    text = _WS_RE.sub(" ", text)
    text = decode_entities(text)
    return text.strip()


def make_preview(content: str) -> str:
    if len(content) <= PREVIEW_CHARS:
        return content
    return content[:PREVIEW_CHARS] + PREVIEW_MARKER


def extract_article(html: str, url: str) -> ArticleRecord:
    """
    Reduces a fetched page to an ArticleRecord.

    Title and author are returned as found in the markup (only trimmed);
    entity decoding is applied to the body text alone.

    Raises EmptyExtraction when the title falls back to the sentinel and
    no body text was found.
    """
    clean = strip_markup(html)
    title = resolve_title(clean)
    author = resolve_author(clean)
    content = normalize_text(resolve_body(clean))

    record = ArticleRecord(
        title=title,
        content=content,
        author=author,
        url=url,
        preview=make_preview(content),
    )
    if title == UNTITLED and not content:
        log.warning(f"empty extraction for {url}")
        raise EmptyExtraction(record)
    return record
