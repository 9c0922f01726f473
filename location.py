from __future__ import annotations

import re
from typing import Protocol

from models import Location

STREET_ABBREVIATIONS = {
    "street": ["st", "str"],
    "avenue": ["ave", "av"],
    "road": ["rd"],
    "boulevard": ["blvd", "blv"],
    "drive": ["dr"],
    "lane": ["ln"],
    "place": ["pl"],
    "court": ["ct"],
    "circle": ["cir"],
    "way": ["wy"],
    "parkway": ["pkwy", "pky"],
    "highway": ["hwy", "hw"],
}

# Well-known San Francisco venues and the ways listings spell them.
SF_LOCATION_ALIASES = {
    "golden gate park": ["gg park", "golden gate", "ggp"],
    "yerba buena gardens": ["ybg", "yerba buena", "yb gardens"],
    "pier 39": ["pier39", "fishermans wharf", "fisherman's wharf"],
    "union square": ["union sq"],
    "moscone center": ["moscone", "moscone convention center"],
    "california academy of sciences": ["cal academy", "calacademy", "cas"],
    "exploratorium": ["exploratorium at pier 15", "pier 15"],
    "presidio": ["the presidio"],
    "crissy field": ["crissy fields"],
    "aquarium of the bay": ["aquarium bay", "pier 39 aquarium"],
    "san francisco zoo": ["sf zoo", "zoo"],
    "japanese tea garden": ["tea garden"],
    "conservatory of flowers": ["conservatory"],
    "de young museum": ["deyoung", "de young"],
    "legion of honor": ["california palace legion honor"],
}

_STREET_PATTERNS = [
    (re.compile(r"\b(?:" + "|".join([full, *abbrevs]) + r")\b"), full)
    for full, abbrevs in STREET_ABBREVIATIONS.items()
]
_NUMBER = re.compile(r"\b\d+\b")


class LocationComparator(Protocol):
    """What the similarity scorer needs from an address matcher."""

    def normalize_address(self, text: str | None) -> str: ...

    def compare_locations(self, a: Location | None, b: Location | None) -> float: ...


class AddressComparator:
    """Address matching tuned for San Francisco family-event listings."""

    def __init__(self, aliases: dict[str, list[str]] | None = None):
        self.aliases = SF_LOCATION_ALIASES if aliases is None else aliases
        # whole words only: "cas" must not match "castro"
        self._alias_patterns = []
        for canonical, names in self.aliases.items():
            spellings = {self.normalize_address(n) for n in [canonical, *names]}
            pattern = r"\b(?:" + "|".join(re.escape(s) for s in sorted(spellings)) + r")\b"
            self._alias_patterns.append((re.compile(pattern), canonical))

    def normalize_address(self, text: str | None) -> str:
        if not text:
            return ""
        text = text.lower().strip()
        text = re.sub(r"[.,;!?()]", " ", text)
        text = re.sub(r"\s+", " ", text)

        for pattern, full in _STREET_PATTERNS:
            text = pattern.sub(full, text)

        text = re.sub(r"\b(?:san francisco|sf|san fran)\b", "sf", text)
        text = re.sub(r"\b(?:california|ca)\b", "ca", text)
        # "3rd street" -> "3 street"
        text = re.sub(r"\b(\d+)(?:st|nd|rd|th)\s+(street|avenue)\b", r"\1 \2", text)
        # ZIP codes
        text = re.sub(r"\b\d{5}(?:-\d{4})?\b", "", text)
        text = re.sub(r"\s*sf\s*ca\s*$", "", text)

        return re.sub(r"\s+", " ", text).strip()

    def canonical_location(self, text: str | None) -> str:
        normalized = self.normalize_address(text)
        for pattern, canonical in self._alias_patterns:
            if pattern.search(normalized):
                return canonical
        return normalized

    def extract_identifiers(self, text: str | None) -> dict:
        normalized = self.normalize_address(text)
        number = _NUMBER.search(normalized)
        return {
            "street_number": number.group(0) if number else None,
            "street_name": _NUMBER.sub("", normalized, count=1).strip(),
            "canonical": self.canonical_location(text),
            "normalized": normalized,
        }

    def compare_locations(self, a: Location | None, b: Location | None) -> float:
        addr_a = a.address if a else ""
        addr_b = b.address if b else ""
        if not addr_a or not addr_b:
            return 0.0

        norm_a = self.normalize_address(addr_a)
        norm_b = self.normalize_address(addr_b)
        if norm_a == norm_b:
            return 1.0

        if self.canonical_location(addr_a) == self.canonical_location(addr_b):
            return 0.95

        if not norm_a or not norm_b:
            return 0.0
        if norm_a in norm_b or norm_b in norm_a:
            return 0.8

        words_a = {w for w in norm_a.split() if len(w) > 2}
        words_b = {w for w in norm_b.split() if len(w) > 2}
        total = max(len(words_a), len(words_b))
        if total == 0:
            return 0.0

        word_similarity = len(words_a & words_b) / total

        number_a = _NUMBER.search(norm_a)
        number_b = _NUMBER.search(norm_b)
        same_number = (
            number_a is not None
            and number_b is not None
            and number_a.group(0) == number_b.group(0)
        )
        if same_number and word_similarity > 0.3:
            return min(0.9, word_similarity + 0.3)

        return word_similarity
