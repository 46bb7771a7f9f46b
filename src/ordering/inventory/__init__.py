"""Inventory adapter factory.

The in-memory adapter is the default. Deployments that track stock install
their own adapter with set_inventory() at startup.
"""

from ordering.inventory.fake_adapter import FakeInventory
from ordering.inventory.port import InventoryPort

_current_inventory: InventoryPort | None = None


def get_inventory() -> InventoryPort:
    global _current_inventory
    if _current_inventory is None:
        _current_inventory = FakeInventory()
    return _current_inventory


def set_inventory(inventory: InventoryPort) -> None:
    global _current_inventory
    _current_inventory = inventory


def reset_inventory() -> None:
    global _current_inventory
    _current_inventory = None
