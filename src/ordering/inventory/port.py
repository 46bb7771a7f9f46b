"""Inventory port — releases stock held for an order that will not be paid."""

from abc import ABC, abstractmethod


class InventoryPort(ABC):
    @abstractmethod
    def release(self, order_id: str, items: list[dict], reason: str) -> None:
        """Return the reserved quantities of ``items`` to available stock."""
        ...
