"""Merchant normalisation helpers used to group bank-statement descriptions."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Sequence

__all__ = [
    "UNKNOWN_MERCHANT",
    "MAX_MERCHANT_TOKENS",
    "NormalizationRule",
    "DEFAULT_PREFIX_RULES",
    "DEFAULT_SUFFIX_RULES",
    "DEFAULT_RULES",
    "normalize_merchant",
    "merchant_display_name",
]

UNKNOWN_MERCHANT = "unknown_merchant"
MAX_MERCHANT_TOKENS = 3


@dataclass(frozen=True)
class NormalizationRule:
    """A single ``pattern -> replacement`` rewrite applied to an uppercased description."""

    pattern: re.Pattern[str]
    replacement: str = ""

    @classmethod
    def compile(cls, pattern: str, replacement: str = "") -> "NormalizationRule":
        return cls(re.compile(pattern), replacement)

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


_SEP = r"\s*[-:*]?\s*"

DEFAULT_PREFIX_RULES: tuple[NormalizationRule, ...] = (
    NormalizationRule.compile(rf"^DEBIT CARD PURCHASE{_SEP}"),
    NormalizationRule.compile(rf"^CHECKCARD PURCHASE{_SEP}"),
    NormalizationRule.compile(rf"^CHECKCARD \d{{4}}{_SEP}"),
    NormalizationRule.compile(rf"^POS (?:DEBIT|PURCHASE|WITHDRAWAL){_SEP}"),
    NormalizationRule.compile(rf"^ACH (?:DEBIT|WITHDRAWAL){_SEP}"),
    NormalizationRule.compile(rf"^(?:RECURRING|PREAUTHORIZED|BILL) PAYMENT{_SEP}"),
    NormalizationRule.compile(rf"^PURCHASE AUTHORIZED ON \d{{1,2}}/\d{{1,2}}{_SEP}"),
    NormalizationRule.compile(r"^SQ\s*\*\s*"),
    NormalizationRule.compile(r"^TST\s*\*\s*"),
    NormalizationRule.compile(r"^PAYPAL\s*\*\s*"),
    NormalizationRule.compile(r"^GOOGLE\s*\*\s*"),
    NormalizationRule.compile(r"^APPLE\.COM/BILL\s*"),
    NormalizationRule.compile(r"^AMZN MKTP US\s*\*\s*"),
    NormalizationRule.compile(r"^SP\s*\*\s*"),
)

DEFAULT_SUFFIX_RULES: tuple[NormalizationRule, ...] = (
    NormalizationRule.compile(r"\s+AUTHORIZED ON \d{1,2}/\d{1,2}(?:/\d{2,4})?\s*$"),
    NormalizationRule.compile(r"\s+\d{1,2}/\d{1,2}(?:/\d{2,4})?\s*$"),
    NormalizationRule.compile(r"\s+\d{4}-\d{2}-\d{2}\s*$"),
    NormalizationRule.compile(r"\s+(?:REF|REFERENCE|TRACE|CONF)(?:\s*(?:NO\.?|#|:)\s*|\s+)[A-Z0-9-]+\s*$"),
    NormalizationRule.compile(r"\s+(?:CHECK|CHK)\s*(?:NO\.?|#)?\s*\d+\s*$"),
    NormalizationRule.compile(r"\s+(?:ACCT|ACCOUNT|CARD)\s*(?:NO\.?|#|ENDING(?: IN)?)?\s*[X*]*\d{4}\s*$"),
    NormalizationRule.compile(r"\s+[X*]{2,}\d{2,4}\s*$"),
    NormalizationRule.compile(r"\s*#\s*\d+\s*$"),
    NormalizationRule.compile(r"\s+\d{5,}\s*$"),
)

DEFAULT_RULES: tuple[NormalizationRule, ...] = DEFAULT_PREFIX_RULES + DEFAULT_SUFFIX_RULES

_NON_ALPHANUMERIC = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def _apply_rules(text: str, rules: Sequence[NormalizationRule]) -> str:
    # Rules can uncover one another; apply until nothing changes.
    for _ in range(len(rules) + 1):
        previous = text
        for rule in rules:
            text = rule.apply(text).strip()
        if text == previous:
            break
    return text


@lru_cache(maxsize=2048)
def _normalize(description: str, rules: tuple[NormalizationRule, ...]) -> str:
    name = _apply_rules(_WHITESPACE.sub(" ", description.upper()).strip(), rules)
    name = _NON_ALPHANUMERIC.sub("", name.lower())
    name = _WHITESPACE.sub(" ", name).strip()
    tokens = name.split(" ")[:MAX_MERCHANT_TOKENS] if name else []
    return " ".join(tokens) or UNKNOWN_MERCHANT


def normalize_merchant(
    description: Any,
    rules: Sequence[NormalizationRule] = DEFAULT_RULES,
) -> str:
    """Return a canonical merchant key for a raw transaction description.

    Parameters
    ----------
    description:
        Raw bank-statement text. Non-string input is tolerated.
    rules:
        Ordered rewrite rules stripping processor prefixes, trailing dates,
        reference numbers and account fragments.

    Returns
    -------
    str
        Lowercase alphanumeric key of at most three tokens, or
        ``"unknown_merchant"`` when nothing identifying remains.
    """

    if not isinstance(description, str):
        if description is None or (isinstance(description, float) and math.isnan(description)):
            return UNKNOWN_MERCHANT
        description = str(description)
    if not description.strip():
        return UNKNOWN_MERCHANT
    return _normalize(description, tuple(rules))


@lru_cache(maxsize=512)
def merchant_display_name(raw_name: str) -> str:
    """Create a clean display label for merchants based on the raw name."""

    if not raw_name or not raw_name.strip():
        return "Unknown merchant"

    cleaned = _apply_rules(_WHITESPACE.sub(" ", raw_name.upper()).strip(), DEFAULT_RULES)
    return cleaned.title() if cleaned else "Unknown merchant"
