from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Callable, Literal

from gridmerge.config import GameConfig
from gridmerge.core.coords import Coordinate, latlng_to_cell
from gridmerge.core.events import EventListener, GameEvent
from gridmerge.core.grid_store import Cell
from gridmerge.core.session import GameSession
from gridmerge.fsm import InventoryFSM
from gridmerge.turn_processing.validators import (
    ActivationRejected,
    ValidationContext,
    build_pipelines,
    pipeline_for_action,
)

logger = logging.getLogger(__name__)

ActionName = Literal["pickup", "place", "combine", "move"]

# Returns True when the snapshot was written.
PersistFn = Callable[[GameSession], bool]


@dataclass(frozen=True, slots=True)
class ActivationResult:
    """Outcome of one activation or position update.

    - `accepted`: whether any state changed.
    - `mutated_coordinates`: cells whose value changed (empty for moves).
    - `events`: notifications already delivered to listeners.
    - `saved`: persistence outcome; None when no persistence hook is wired or nothing changed.
    """

    accepted: bool
    message: str
    action: ActionName | None = None
    mutated_coordinates: tuple[Coordinate, ...] = ()
    events: tuple[GameEvent, ...] = ()
    victory: bool = False
    saved: bool | None = None


class InteractionEngine:
    """Applies player activations to a GameSession.

    Entry points:
      - `handle_activation(coordinate)` for clicks/taps on a cell.
      - `handle_position(lat, lng)` for an external position feed.

    Every accepted transition is persisted and then announced to listeners before
    the result is returned. Rejections never raise; they come back with
    `accepted=False` and leave the session untouched.
    """

    def __init__(
        self,
        session: GameSession,
        *,
        config: GameConfig | None = None,
        persist: PersistFn | None = None,
        listeners: Iterable[EventListener] = (),
    ) -> None:
        self.session = session
        self.config = config or GameConfig()
        self._persist = persist
        self._listeners: list[EventListener] = list(listeners)
        self._pipelines = build_pipelines(self.config)

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def handle_activation(self, target: Coordinate) -> ActivationResult:
        # Unseen cells get their procedural value before any rule looks at them.
        cell = self.session.store.get(target)
        try:
            action = self._plan_activation(cell)
        except ActivationRejected as e:
            logger.info("Rejected activation at %s: %s", target, e)
            return ActivationResult(accepted=False, message=str(e))

        fsm = InventoryFSM(self.session.inventory)
        if action == "pickup":
            return self._pickup(fsm, cell)
        if action == "place":
            return self._place(fsm, cell)
        if action == "combine":
            return self._combine(fsm, cell)
        return self._move(fsm, target)

    def handle_position(self, *, lat: float, lng: float) -> ActivationResult:
        cfg = self.config
        target = latlng_to_cell(
            lat=lat,
            lng=lng,
            origin_lat=cfg.origin_lat,
            origin_lng=cfg.origin_lng,
            cell_degrees=cfg.cell_degrees,
        )
        ctx = ValidationContext(action="position", target=target)
        try:
            pipeline_for_action(self._pipelines, "position").validate(ctx=ctx, session=self.session)
        except ActivationRejected as e:
            logger.debug("Ignored position update -> %s: %s", target, e)
            return ActivationResult(accepted=False, message=str(e))

        # The feed moves the player whether or not a token is being carried.
        self.session.position = target
        return self._commit(
            action="move",
            message=f"Moved to ({target.i}, {target.j}).",
            events=[GameEvent.now(type="PLAYER_MOVED", coordinate=target)],
        )

    def _plan_activation(self, cell: Cell) -> ActionName:
        target = cell.coordinate
        ctx = ValidationContext(action="activate", target=target)
        pipeline_for_action(self._pipelines, "activate").validate(ctx=ctx, session=self.session)

        held = self.session.inventory.peek()
        if held is None:
            if cell.value is not None:
                return "pickup"
            move_ctx = ValidationContext(action="move", target=target)
            pipeline_for_action(self._pipelines, "move").validate(ctx=move_ctx, session=self.session)
            return "move"

        if cell.value is None:
            return "place"
        if cell.value == held:
            return "combine"
        raise ActivationRejected("can't combine different tokens")

    def _pickup(self, fsm: InventoryFSM, cell: Cell) -> ActivationResult:
        fsm.pick_up()
        value = cell.value
        self.session.inventory.set(value)
        self.session.store.set(cell.coordinate, None)
        return self._commit(
            action="pickup",
            fsm=fsm,
            message=f"Picked up a {value}.",
            events=[GameEvent.now(type="CELL_CHANGED", coordinate=cell.coordinate, value=None)],
        )

    def _place(self, fsm: InventoryFSM, cell: Cell) -> ActivationResult:
        fsm.place()
        value = self.session.inventory.take()
        self.session.store.set(cell.coordinate, value)
        return self._commit(
            action="place",
            fsm=fsm,
            message=f"Placed a {value}.",
            events=[GameEvent.now(type="CELL_CHANGED", coordinate=cell.coordinate, value=value)],
        )

    def _combine(self, fsm: InventoryFSM, cell: Cell) -> ActivationResult:
        fsm.combine()
        held = self.session.inventory.take()
        if held is None:
            raise RuntimeError("combine reached with an empty inventory")
        merged = held * 2
        self.session.store.set(cell.coordinate, merged)

        events = [GameEvent.now(type="CELL_CHANGED", coordinate=cell.coordinate, value=merged)]
        message = f"Combined into a {merged}!"
        victory = merged >= self.config.victory_threshold
        if victory:
            events.append(GameEvent.now(type="VICTORY", coordinate=cell.coordinate, value=merged))
            message += f" You reached {merged} and win! Keep playing if you like."
        return self._commit(action="combine", fsm=fsm, message=message, events=events, victory=victory)

    def _move(self, fsm: InventoryFSM, target: Coordinate) -> ActivationResult:
        fsm.move()
        self.session.position = target
        return self._commit(
            action="move",
            fsm=fsm,
            message=f"Moved to ({target.i}, {target.j}).",
            events=[GameEvent.now(type="PLAYER_MOVED", coordinate=target)],
        )

    def _commit(
        self,
        *,
        action: ActionName,
        message: str,
        events: list[GameEvent],
        fsm: InventoryFSM | None = None,
        victory: bool = False,
    ) -> ActivationResult:
        # The FSM and the slot must agree before anything is written out.
        if fsm is not None and not fsm.in_sync():
            logger.error("Inventory drifted from FSM after %s: fsm=%s slot=%r", action, fsm.current_state.id, fsm.inventory)
            raise RuntimeError(f"inventory out of sync with FSM after {action}")
        saved = self._persist(self.session) if self._persist is not None else None
        for event in events:
            for listener in self._listeners:
                listener(event)

        mutated = tuple(e.coordinate for e in events if e.type == "CELL_CHANGED")
        logger.debug("Applied %s at %s (saved=%s)", action, [e.coordinate for e in events], saved)
        return ActivationResult(
            accepted=True,
            message=message,
            action=action,
            mutated_coordinates=mutated,
            events=tuple(events),
            victory=victory,
            saved=saved,
        )
