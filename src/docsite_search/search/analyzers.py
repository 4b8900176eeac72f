"""Analyzer utilities for the documentation search engine.

This module mirrors Whoosh's composable tokenizer/filter design without
pulling in heavy dependencies. The standard analyzer turns raw chunk text or a
query string into index terms:

    markup stripping -> word tokenizer -> lowercase -> diacritic folding
    -> minimum length -> stop words -> light suffix stemming

Every filter is deterministic, so the same text always yields the same terms.
The stemmer only removes suffixes, which keeps each term a prefix of the
folded surface word it came from; the highlighter relies on that. The price
is that "-ies" plurals and their "-y" singulars ("queries"/"query") stem to
different terms.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, MutableMapping, Sequence
from dataclasses import dataclass, field, replace
import re
from typing import Any, Protocol
import unicodedata


@dataclass
class Token:
    """One term occurrence: normalized text plus where it sits in the source.

    ``start_char``/``end_char`` index the text the tokenizer saw (after markup
    stripping); ``attributes`` carries per-filter metadata such as the
    pre-stem ``surface`` form.
    """

    text: str
    position: int
    start_char: int
    end_char: int
    attributes: MutableMapping[str, Any] = field(default_factory=dict)

    def copy_with(self, **updates: Any) -> Token:
        updates.setdefault("attributes", dict(self.attributes))
        return replace(self, **updates)

    @property
    def surface(self) -> str:
        """Folded word before stemming (falls back to the token text)."""
        return self.attributes.get("surface", self.text)


class Analyzer(Protocol):
    """Turns text into the ordered list of index terms."""

    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


class Tokenizer(Protocol):
    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


_IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_HTML_TAG_PATTERN = re.compile(r"</?[A-Za-z][^>]*>")
_FENCE_PATTERN = re.compile(r"^\s*(```|~~~)\S*\s*$", re.MULTILINE)
_MARKER_PATTERN = re.compile(r"[*`~#>|]+")


def strip_markup(text: str) -> str:
    """Remove markdown/HTML artifacts while keeping the readable text.

    Links and images keep their label, tags and fence lines disappear, and
    emphasis/heading/quote markers become spaces so adjacent words still split.
    """

    if not text:
        return ""
    stripped = _IMAGE_PATTERN.sub(r"\1", text)
    stripped = _LINK_PATTERN.sub(r"\1", stripped)
    stripped = _HTML_TAG_PATTERN.sub(" ", stripped)
    stripped = _FENCE_PATTERN.sub(" ", stripped)
    return _MARKER_PATTERN.sub(" ", stripped)


def fold_char(char: str) -> str:
    """Lowercase a single character and drop its diacritics (may return '' or several chars)."""

    decomposed = unicodedata.normalize("NFKD", char.lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def fold_text(text: str) -> str:
    """Lowercase ``text`` and strip diacritics (``"Café"`` -> ``"cafe"``)."""

    return "".join(fold_char(char) for char in text)


def fold_with_offsets(text: str) -> tuple[str, list[int]]:
    """Fold ``text`` and map every folded character back to its source index."""

    folded: list[str] = []
    offsets: list[int] = []
    for index, char in enumerate(text):
        for piece in fold_char(char):
            folded.append(piece)
            offsets.append(index)
    return "".join(folded), offsets


class RegexTokenizer:
    """Regex-based tokenizer that yields word tokens."""

    def __init__(self, pattern: str = r"\w+", flags: int = re.UNICODE | re.MULTILINE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield token.copy_with(text=token.text.lower())


class AccentFoldingFilter:
    """Strips diacritics so "Café" and "cafe" index to the same term."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.isascii():
                yield token
                continue
            folded = fold_text(token.text)
            if folded:
                yield token.copy_with(text=folded)


class MinLengthFilter:
    """Drops tokens shorter than ``min_length`` characters."""

    def __init__(self, min_length: int = 2) -> None:
        self.min_length = min_length

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if len(token.text) >= self.min_length:
                yield token


# Function words that carry no meaning in documentation queries.
DEFAULT_STOPWORDS = frozenset(
    """
    a an and are as at be but by for if in into is it no not of on or such
    that the their then there these they this to was will with
    """.split()
)


class StopFilter:
    """Removes stopwords; expects lowercased input, so it runs after ``LowercaseFilter``."""

    def __init__(self, stopwords: Iterable[str] | None = None) -> None:
        self.stopwords = frozenset(word.lower() for word in (DEFAULT_STOPWORDS if stopwords is None else stopwords))

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        return (token for token in tokens if token.text not in self.stopwords)


# (suffix, characters removed); first match wins
_PLURAL_RULES: tuple[tuple[str, int], ...] = (
    ("sses", 2),
    ("ches", 2),
    ("shes", 2),
    ("xes", 2),
    ("zes", 2),
    ("ses", 2),
    ("ies", 2),
)
_KEEP_TRAILING_S = ("ss", "us", "is")
_MIN_STEM_LENGTH = 3


def _strip_suffix_once(word: str) -> str | None:
    for suffix, cut in _PLURAL_RULES:
        if word.endswith(suffix):
            candidate = word[:-cut]
            if len(candidate) >= _MIN_STEM_LENGTH:
                return candidate
            # too short: fall back to dropping the plain "s" ("uses" -> "use")
            break
    if word.endswith("s") and not word.endswith(_KEEP_TRAILING_S):
        candidate = word[:-1]
        return candidate if len(candidate) >= _MIN_STEM_LENGTH else None
    if word.endswith("e"):
        candidate = word[:-1]
        return candidate if len(candidate) >= _MIN_STEM_LENGTH else None
    return None


def light_stem(word: str) -> str:
    """Strip plural and trailing-e suffixes until none apply.

    Running to a fixpoint makes singular and plural forms converge
    ("lens"/"lenses" -> "len", "response"/"responses" -> "respon",
    "use"/"uses" -> "use").

    Only suffixes are removed, never replaced, so "-ies" plurals do not meet
    their "-y" singulars: "queries" stems to "queri" while "query" stays
    "query". Searching for one does not find the other exactly; the fuzzy
    fallback (edit distance 1) usually bridges them.
    """

    current = word
    while (shorter := _strip_suffix_once(current)) is not None:
        current = shorter
    return current


class LightStemFilter:
    """Applies ``light_stem`` and remembers the pre-stem surface form."""

    def __init__(self, stemmer: Callable[[str], str] = light_stem) -> None:
        self._stem = stemmer

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            stemmed = self._stem(token.text)
            attributes = dict(token.attributes)
            attributes.setdefault("surface", token.text)
            yield token.copy_with(text=stemmed, attributes=attributes)


class AnalyzerPipeline:
    """Composable analyzer pipeline (char filters + tokenizer + token filters)."""

    def __init__(
        self,
        tokenizer: Tokenizer,
        filters: Sequence[TokenFilter] | None = None,
        *,
        char_filters: Sequence[Callable[[str], str]] | None = None,
    ) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])
        self.char_filters = list(char_filters or [])

    def __call__(self, text: str) -> list[Token]:
        for char_filter in self.char_filters:
            text = char_filter(text)
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


class StandardAnalyzer:
    """Default analyzer used for titles, categories, bodies and queries."""

    def __init__(
        self,
        *,
        stopwords: Sequence[str] | None = None,
        apply_stemming: bool = True,
        min_length: int = 2,
    ) -> None:
        filters: list[TokenFilter] = [
            LowercaseFilter(),
            AccentFoldingFilter(),
            MinLengthFilter(min_length),
            StopFilter(stopwords),
        ]
        if apply_stemming:
            filters.append(LightStemFilter())
        self.pipeline = AnalyzerPipeline(RegexTokenizer(), filters, char_filters=[strip_markup])

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)


_ANALYZER_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    "default": lambda: StandardAnalyzer(),
    "standard": lambda: StandardAnalyzer(),
    "english-nostem": lambda: StandardAnalyzer(apply_stemming=False),
}


def get_analyzer(name: str | None = "default") -> Analyzer:
    """Build a fresh analyzer from the registry; ``None`` means the default one."""

    key = (name or "default").lower()
    try:
        factory = _ANALYZER_FACTORIES[key]
    except KeyError:
        raise ValueError(f"Unknown analyzer {name!r}; expected one of {sorted(_ANALYZER_FACTORIES)}") from None
    return factory()


_DEFAULT_ANALYZER = StandardAnalyzer()


def tokenize(text: str) -> list[str]:
    """Return the normalized index terms for ``text`` (empty input -> empty list)."""

    if not text:
        return []
    return [token.text for token in _DEFAULT_ANALYZER(text)]


def normalize_term(term: str) -> str | None:
    """Normalize a single term the way the tokenizer would, or None if it is discarded."""

    terms = tokenize(term)
    return terms[0] if terms else None
