"""
WaBot - Quote Operations
========================

Per-group quote lists.
"""

import random
from typing import Optional, TYPE_CHECKING

from wabot.core.logger import logger
from wabot.core.state.models import Quote

if TYPE_CHECKING:
    from wabot.core.state.store import StateStore


class QuotesMixin:
    """Mixin for saved quotes."""

    def add_quote(self: "StateStore", group_id: str, text: str, author: str) -> Quote:
        quote = Quote(text=text, author=author)
        self.document.quotes.setdefault(group_id, []).append(quote)
        self.save()

        logger.tree("Quote Saved", [
            ("Group", group_id),
            ("Author", author),
            ("Text", text[:50]),
        ], emoji="💬")
        return quote

    def random_quote(
        self: "StateStore",
        group_id: str,
        rng: Optional[random.Random] = None,
    ) -> Optional[Quote]:
        """Uniformly random saved quote for the group, or None if there are none."""
        quotes = self.document.quotes.get(group_id)
        if not quotes:
            return None
        return (rng or random).choice(quotes)

    def quote_count(self: "StateStore", group_id: str) -> int:
        return len(self.document.quotes.get(group_id, []))


__all__ = ["QuotesMixin"]
