"""
Substitution rule for brand rewriting: one token in three case variants,
plus a literal phrase that exempts a whole text value from rewriting.
"""

from typing import Any, Dict, Optional, Tuple


DEFAULT_SOURCE_TOKEN = "Yale"
DEFAULT_TARGET_TOKEN = "Fale"
DEFAULT_EXEMPT_PHRASE = "no Yale references"


def _capitalize(token: str) -> str:
    # str.capitalize() would lowercase inner capitals (McGill -> Mcgill)
    return token[:1].upper() + token[1:]


class RewriteRules:
    """Ordered (pattern, replacement) pairs and the exemption phrase.

    Matching is literal and case-sensitive. Only the exact variants in
    ``replacements`` are rewritten, so a mixed-case form such as ``YaLe``
    is left as it is.
    """

    def __init__(self, replacements: Tuple[Tuple[str, str], ...], exempt_phrase: Optional[str] = None):
        self.replacements = tuple((str(p), str(r)) for p, r in replacements)
        self.exempt_phrase = exempt_phrase or None

    @classmethod
    def for_token(cls, source: str, target: str, exempt_phrase: Optional[str] = None) -> "RewriteRules":
        """Build the upper / capitalized / lower variants of one token."""
        return cls(
            replacements=(
                (source.upper(), target.upper()),
                (_capitalize(source), _capitalize(target)),
                (source.lower(), target.lower()),
            ),
            exempt_phrase=exempt_phrase,
        )

    @classmethod
    def from_config(cls, section: Optional[Dict[str, Any]] = None) -> "RewriteRules":
        """Build rules from the ``rewrite`` config section, defaulting missing keys."""
        section = section or {}
        return cls.for_token(
            str(section.get('source_token') or DEFAULT_SOURCE_TOKEN),
            str(section.get('target_token') or DEFAULT_TARGET_TOKEN),
            section.get('exempt_phrase', DEFAULT_EXEMPT_PHRASE),
        )

    def is_exempt(self, text: str) -> bool:
        return self.exempt_phrase is not None and self.exempt_phrase in text

    def substitute(self, text: str) -> str:
        """Apply every pair as a global literal replacement, in order."""
        for pattern, replacement in self.replacements:
            if pattern and pattern in text:
                text = text.replace(pattern, replacement)
        return text

    def __eq__(self, other):
        if not isinstance(other, RewriteRules):
            return NotImplemented
        return self.replacements == other.replacements and self.exempt_phrase == other.exempt_phrase

    def __repr__(self):
        return f"RewriteRules(replacements={self.replacements!r}, exempt_phrase={self.exempt_phrase!r})"


DEFAULT_RULES = RewriteRules.for_token(DEFAULT_SOURCE_TOKEN, DEFAULT_TARGET_TOKEN, DEFAULT_EXEMPT_PHRASE)


def replace_text(text: str, rules: RewriteRules = DEFAULT_RULES) -> str:
    """Rewrite a single text value, leaving it alone if it carries the exempt phrase."""
    if not text or rules.is_exempt(text):
        return text
    return rules.substitute(text)
