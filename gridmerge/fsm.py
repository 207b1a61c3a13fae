from __future__ import annotations

from statemachine import State, StateMachine

from gridmerge.core.inventory import InventorySlot

INVENTORY_EMPTY = "inventory_empty"
INVENTORY_FULL = "inventory_full"


class InventoryFSM(StateMachine):
    """FSM wrapper around an InventorySlot.

    The state is derived from the slot on construction and never stored elsewhere:
    - empty -> full on pickup
    - full -> empty on place or combine
    - moving only happens with empty hands
    The engine applies the actual mutations; the FSM only guards transitions.
    """

    inventory_empty = State(INVENTORY_EMPTY, value=INVENTORY_EMPTY, initial=True)
    inventory_full = State(INVENTORY_FULL, value=INVENTORY_FULL)

    pick_up = inventory_empty.to(inventory_full)
    place = inventory_full.to(inventory_empty)
    combine = inventory_full.to(inventory_empty)
    move = inventory_empty.to.itself()

    def __init__(self, inventory: InventorySlot):
        self.inventory = inventory
        super().__init__(start_value=INVENTORY_EMPTY if inventory.is_empty() else INVENTORY_FULL)

    @property
    def holding(self) -> bool:
        return self.current_state == self.inventory_full

    def in_sync(self) -> bool:
        return self.holding == (not self.inventory.is_empty())
