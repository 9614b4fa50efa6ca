"""Text analysis for the in-memory index.

An analyzer turns a field value into the terms that are posted to the index
and, at query time, into the terms that are looked up. Both sides must run the
same analyzer or matches are silently lost, which is why schema fields refer
to analyzers by name instead of holding instances.

Two families exist:

- ``keyword``: the whole value is one term, byte for byte.
- ``english`` and friends: word tokens, possessives removed, lowercased,
  stopwords dropped and (optionally) suffixes stemmed.

The tokenizer/filter split follows Whoosh: a tokenizer yields ``Token``
objects and each filter is a callable from one token stream to another.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, replace
import re


@dataclass(frozen=True, slots=True)
class Token:
    """A term plus where it came from in the analyzed text."""

    text: str
    position: int
    start_char: int
    end_char: int


Analyzer = Callable[[str], list[Token]]
TokenFilter = Callable[[Iterable[Token]], Iterator[Token]]


class RegexTokenizer:
    """Yield one token per regex match; the default keeps ``don't`` whole."""

    def __init__(self, pattern: str = r"\w+(?:'\w+)*") -> None:
        self.pattern = re.compile(pattern)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(match.group(0), position, match.start(), match.end())


def possessive_filter(tokens: Iterable[Token]) -> Iterator[Token]:
    """``Francisca's`` -> ``Francisca``."""
    for token in tokens:
        if len(token.text) > 2 and token.text[-2:].lower() == "'s":
            token = replace(token, text=token.text[:-2])
        yield token


def lowercase_filter(tokens: Iterable[Token]) -> Iterator[Token]:
    for token in tokens:
        lowered = token.text.lower()
        yield token if lowered == token.text else replace(token, text=lowered)


# Lucene's English stop set
ENGLISH_STOPWORDS = frozenset(
    (
        "a an and are as at be but by for if in into is it no not of on or such "
        "that the their then there these they this to was will with"
    ).split()
)


def stop_filter(stopwords: Iterable[str] = ENGLISH_STOPWORDS) -> TokenFilter:
    blocked = {word.lower() for word in stopwords}

    def apply(tokens: Iterable[Token]) -> Iterator[Token]:
        return (token for token in tokens if token.text.lower() not in blocked)

    return apply


class EnglishStemmer:
    """Light suffix stripper in the spirit of Porter's step 1 and 2.

    Derivational endings are rewritten first (``organization`` ->
    ``organize``); otherwise one inflectional ending is removed when at least
    three characters remain. Words with digits or punctuation are only
    lowercased, so ids and codes survive untouched.
    """

    REWRITES: dict[str, str] = {
        "ization": "ize",
        "ational": "ate",
        "fulness": "ful",
        "ousness": "ous",
        "iveness": "ive",
        "tional": "tion",
        "biliti": "ble",
        "lessli": "less",
        "entli": "ent",
        "enci": "ence",
        "anci": "ance",
        "izer": "ize",
        "abli": "able",
        "alli": "al",
        "ator": "ate",
        "alism": "al",
        "aliti": "al",
        "ousli": "ous",
        "ration": "rate",
        "ation": "ate",
        "ness": "",
        "ment": "",
        "able": "",
        "ible": "",
    }
    ENDINGS: tuple[str, ...] = ("ingly", "edly", "ing", "ed", "ly", "es", "s")

    def __call__(self, word: str) -> str:
        lower = word.lower()
        if not lower.isalpha():
            return lower
        for suffix, replacement in self.REWRITES.items():
            stem = lower[: -len(suffix)]
            if lower.endswith(suffix) and len(stem) >= 2 and len(stem + replacement) >= 2:
                return stem + replacement
        # "ss" is not a plural (address, business)
        if lower.endswith("ss"):
            return lower
        for ending in self.ENDINGS:
            if lower.endswith(ending) and len(lower) - len(ending) >= 3:
                return lower[: -len(ending)]
        return lower


def stem_filter(stemmer: Callable[[str], str] | None = None) -> TokenFilter:
    stem = stemmer or EnglishStemmer()

    def apply(tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            yield replace(token, text=stem(token.text))

    return apply


class AnalyzerPipeline:
    """A tokenizer followed by filters; positions are renumbered after filtering."""

    def __init__(self, tokenizer: Callable[[str], Iterator[Token]], *filters: TokenFilter) -> None:
        self.tokenizer = tokenizer
        self.filters = filters

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        return [replace(token, position=position) for position, token in enumerate(stream)]


class KeywordAnalyzer:
    """The whole value is a single term; nothing is lowercased or trimmed."""

    def __call__(self, text: str) -> list[Token]:
        return [Token(text, 0, 0, len(text))] if text else []


def english_analyzer(*, stopwords: Iterable[str] = ENGLISH_STOPWORDS, stem: bool = True) -> AnalyzerPipeline:
    filters = [possessive_filter, lowercase_filter, stop_filter(stopwords)]
    if stem:
        filters.append(stem_filter())
    return AnalyzerPipeline(RegexTokenizer(), *filters)


_ANALYZER_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    "default": lambda: english_analyzer(stopwords=()),
    "english": english_analyzer,
    "english-nostem": lambda: english_analyzer(stem=False),
    "keyword": KeywordAnalyzer,
}


def available_analyzers() -> list[str]:
    return sorted(_ANALYZER_FACTORIES)


def get_analyzer(name: str | None) -> Analyzer:
    """Return a fresh analyzer by (case-insensitive) name; ``None`` means English."""

    normalized = "english" if name is None else name.lower()
    try:
        factory = _ANALYZER_FACTORIES[normalized]
    except KeyError:
        raise ValueError(f"Unknown analyzer '{name}'. Available: {available_analyzers()}") from None
    return factory()
