"""In-memory inventory adapter that records every release."""

from ordering.inventory.port import InventoryPort


class FakeInventory(InventoryPort):
    def __init__(self) -> None:
        self.releases: list[dict] = []
        self.should_fail = False

    def configure(self, should_fail: bool = False) -> None:
        self.should_fail = should_fail

    def release(self, order_id: str, items: list[dict], reason: str) -> None:
        if self.should_fail:
            raise RuntimeError(f"Inventory service unavailable while releasing {order_id}")
        self.releases.append({"order_id": order_id, "items": items, "reason": reason})

    def released_for(self, order_id: str) -> list[dict]:
        return [release for release in self.releases if release["order_id"] == order_id]
