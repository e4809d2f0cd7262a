"""
Herb cart and WhatsApp order hand-off

Purpose: collect herb suggestions the user wants to order, one entry per
herb id, and build the wa.me link that hands the order over to WhatsApp.

Example: whatsapp_order_url([herb]) ->
"https://wa.me/910000000000?text=Hello%21%20I%27d%20like..."
"""
from typing import Iterable, List
from urllib.parse import quote

import config
from schemas import HerbSuggestion

ORDER_HEADER = "Hello! I'd like to place an order for the following Ayurvedic herbs from AyurConnect AI:\n\n"


class Cart:
    def __init__(self):
        self._items: List[HerbSuggestion] = []

    def add(self, herb: HerbSuggestion) -> bool:
        """Add unless a herb with the same id is already in the cart."""
        if herb.id in self:
            return False
        self._items.append(herb)
        return True

    def remove(self, herb_id: str) -> bool:
        before = len(self._items)
        self._items = [item for item in self._items if item.id != herb_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []

    @property
    def items(self) -> List[HerbSuggestion]:
        return list(self._items)

    def __contains__(self, herb_id) -> bool:
        return any(item.id == herb_id for item in self._items)

    def __len__(self) -> int:
        return len(self._items)


def order_message(items: Iterable[HerbSuggestion]) -> str:
    return ORDER_HEADER + "\n".join(f"- {item.name}" for item in items)


def whatsapp_order_url(items: Iterable[HerbSuggestion], number: str = config.WHATSAPP_NUMBER) -> str:
    return f"https://wa.me/{number}?text={quote(order_message(items), safe='')}"
