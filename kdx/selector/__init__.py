"""Label selector mini-language.

Exports:
    LabelSelector      -- parse() a selector string, then matches() label maps.
    LabelExpression    -- One parsed predicate.
    Operator           -- Predicate operators.
    SelectorParseError -- Raised by LabelSelector.parse on malformed input.
"""

from kdx.errors import SelectorParseError
from kdx.selector.label_selector import LabelExpression, LabelSelector, Operator

__all__ = ["LabelExpression", "LabelSelector", "Operator", "SelectorParseError"]
