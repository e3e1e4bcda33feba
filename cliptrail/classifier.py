"""Content-type detection for clipboard text.

:func:`classify` decides whether a blob of text is a URL, source code or
plain prose.  Each detector adds to one of three independent scores and a
fixed priority rule picks the winner.  Images are tagged upstream by the
capture layer and never reach this module.

The weights and thresholds below are tuned heuristics; changing any of them
changes which category borderline inputs land in.
"""

from __future__ import annotations

import json
import re

from .models import Category, ScoreVector

# -- Thresholds & weights -----------------------------------------------------

MIN_CLASSIFY_LENGTH = 5

URL_STRONG_WEIGHT = 10
URL_WEAK_WEIGHT = 5
EMAIL_WEIGHT = 3

KEYWORD_CAP = 5
SYNTAX_WEIGHT = 2
OPERATOR_CAP = 3
HTML_COMPLETE_WEIGHT = 5
HTML_PARTIAL_WEIGHT = 3
JSON_WEIGHT = 5
JSON_MAX_LENGTH = 10_000
INDENT_WEIGHT = 2
INDENT_SAMPLE_LINES = 50
INDENT_RATIO = 0.3

PROSE_PREFIX_LENGTH = 200
PROSE_FEW_SENTENCES = 2  # more than this many segments -> PROSE_FEW_WEIGHT
PROSE_MANY_SENTENCES = 5  # more than this many segments -> PROSE_MANY_WEIGHT
PROSE_FEW_WEIGHT = 1
PROSE_MANY_WEIGHT = 3

URL_THRESHOLD = 5
CODE_THRESHOLD = 3

# -- Patterns -----------------------------------------------------------------
# re.ASCII keeps \w and \b to ASCII semantics.  Whitespace is spelled out as
# _SPACE so that NBSP and the other Unicode spaces still count as blanks.

_SPACE = r"[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]"
_NON_SPACE = "[^" + _SPACE[1:]

_URL_STRONG = re.compile(
    r"^(?:https?://|www\.)[a-z0-9]+(?:[\-.][a-z0-9]+)*\.[a-z]{2,}"
    r"(?::[0-9]{1,5})?(?:/.*)?(?:\?.*)?\Z",
    re.IGNORECASE | re.ASCII,
)
_URL_WEAK = re.compile(
    r"\b(?:https?://|www\.)[\w\-.]+\.[a-z]{2,}" + _NON_SPACE + r"*\b",
    re.IGNORECASE | re.ASCII,
)
_EMAIL = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b", re.ASCII)
_CODE_KEYWORDS = re.compile(
    r"\b(?:function|class|const|let|var|import|export|return|if|for|while|switch"
    r"|case|break|continue|try|catch|throw|async|await|new|this|extends"
    r"|implements|interface|private|public|protected|static|typeof|instanceof"
    r"|null|undefined|true|false|console|document|window|module|require|from"
    r"|as|of|in|do|else|finally|get|set|super|yield)\b",
    re.ASCII,
)
_CODE_SYNTAX = re.compile(r"[{\[(][^{}\[\]()]*[}\])]")
# Alternation order matters: the first alternative that matches wins.
_CODE_OPERATORS = re.compile(
    r"=>|\+=|-=|\*=|/=|%=|\*\*=|&&=|\|\|=|\?\?=|&&|\|\||===|!==|==|!=|>=|<="
    r"|\+\+|--|\*\*|<<|>>|>>>|\?\.|\.\.\.\?|\?:|\?\?"
)
_HTML_COMPLETE = re.compile(
    "^" + _SPACE + r"*<[\w\-]+[^>]*>[\s\S]*</[\w\-]+>" + _SPACE + r"*\Z", re.ASCII
)
_HTML_PARTIAL = re.compile(r"<[\w\-]+[^>]*>|</[\w\-]+>", re.ASCII)
_INDENT = re.compile("^" + _SPACE + "+" + _NON_SPACE)
_SENTENCE_BREAK = re.compile(r"[.!?]+" + _SPACE)


def _url_score(content: str) -> int:
    score = 0
    if _URL_STRONG.search(content):
        score += URL_STRONG_WEIGHT
    elif _URL_WEAK.search(content):
        score += URL_WEAK_WEIGHT
    if _EMAIL.search(content):
        score += EMAIL_WEIGHT
    return score


def _reject_constant(name: str) -> None:
    # NaN and Infinity are not JSON literals.
    raise ValueError(f"non-standard JSON constant {name}")


def _looks_like_json(content: str) -> bool:
    if len(content) >= JSON_MAX_LENGTH or not content.startswith(("{", "[")):
        return False
    try:
        parsed = json.loads(content, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return False
    return isinstance(parsed, (dict, list))


def _indent_score(content: str) -> int:
    lines = content.split("\n")
    if len(lines) <= 2:
        return 0
    sample = lines[:INDENT_SAMPLE_LINES]
    indented = sum(1 for line in sample if _INDENT.match(line))
    return INDENT_WEIGHT if indented / len(sample) > INDENT_RATIO else 0


def _code_score(content: str) -> int:
    score = min(sum(1 for _ in _CODE_KEYWORDS.finditer(content)), KEYWORD_CAP)
    if _CODE_SYNTAX.search(content):
        score += SYNTAX_WEIGHT
    score += min(sum(1 for _ in _CODE_OPERATORS.finditer(content)), OPERATOR_CAP)
    if _HTML_COMPLETE.match(content):
        score += HTML_COMPLETE_WEIGHT
    elif _HTML_PARTIAL.search(content):
        score += HTML_PARTIAL_WEIGHT
    if _looks_like_json(content):
        score += JSON_WEIGHT
    return score + _indent_score(content)


def _text_score(content: str) -> int:
    prefix = content[:PROSE_PREFIX_LENGTH]
    sentences = [s for s in _SENTENCE_BREAK.split(prefix) if s]
    if len(sentences) > PROSE_MANY_SENTENCES:
        return PROSE_MANY_WEIGHT
    if len(sentences) > PROSE_FEW_SENTENCES:
        return PROSE_FEW_WEIGHT
    return 0


def score(content: str) -> ScoreVector:
    """Return the raw url/code/text scores for *content*.

    Inputs shorter than :data:`MIN_CLASSIFY_LENGTH` score zero everywhere.
    """
    if len(content) < MIN_CLASSIFY_LENGTH:
        return ScoreVector()
    return ScoreVector(
        url=_url_score(content),
        code=_code_score(content),
        text=_text_score(content),
    )


def classify(content: str) -> Category:
    """Infer the category of *content*: ``TEXT``, ``URL`` or ``CODE``.

    Never raises.  Ties and weak signals fall back to ``TEXT``.

    >>> classify("https://example.com/path")
    <Category.URL: 'url'>
    """
    if len(content) < MIN_CLASSIFY_LENGTH:
        return Category.TEXT
    scores = score(content)
    if scores.url >= URL_THRESHOLD and scores.url > scores.code:
        return Category.URL
    if scores.code >= CODE_THRESHOLD and scores.code > scores.url:
        return Category.CODE
    return Category.TEXT
