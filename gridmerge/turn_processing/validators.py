from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from gridmerge.config import GameConfig, MovementMode
from gridmerge.core.coords import Coordinate
from gridmerge.core.session import GameSession


class ActivationRejected(ValueError):
    """A recoverable, user-visible refusal. State must be left untouched."""


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    action: str
    target: Coordinate


class ActivationValidator(ABC):
    """A small, composable validation unit for an incoming activation."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, session: GameSession) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class ProximityValidator(ActivationValidator):
    """Only cells within `radius` king moves of the player can be touched."""

    radius: int

    def validate(self, *, ctx: ValidationContext, session: GameSession) -> None:
        if session.position.distance_to(ctx.target) > self.radius:
            raise ActivationRejected("too far away")


@dataclass(frozen=True, slots=True)
class MovementModeValidator(ActivationValidator):
    """Deny a movement source that the configured mode does not drive."""

    mode: MovementMode
    allowed_modes: frozenset[str]
    message: str

    def validate(self, *, ctx: ValidationContext, session: GameSession) -> None:
        if self.mode not in self.allowed_modes:
            raise ActivationRejected(self.message)


@dataclass(frozen=True, slots=True)
class NewCellValidator(ActivationValidator):
    """A move must actually leave the current cell."""

    message: str = "you are already here"

    def validate(self, *, ctx: ValidationContext, session: GameSession) -> None:
        if ctx.target == session.position:
            raise ActivationRejected(self.message)


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[ActivationValidator, ...]

    def validate(self, *, ctx: ValidationContext, session: GameSession) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, session=session)


def build_pipelines(config: GameConfig) -> dict[str, ValidatorPipeline]:
    """Pipelines keyed by action name, parameterized by the game config."""

    return {
        "activate": ValidatorPipeline(validators=(ProximityValidator(radius=config.proximity_radius),)),
        "move": ValidatorPipeline(
            validators=(
                MovementModeValidator(
                    mode=config.movement_mode,
                    allowed_modes=frozenset({"manual-click"}),
                    message="movement is externally controlled",
                ),
                NewCellValidator(),
            )
        ),
        "position": ValidatorPipeline(
            validators=(
                MovementModeValidator(
                    mode=config.movement_mode,
                    allowed_modes=frozenset({"external-feed"}),
                    message="movement is controlled by clicks",
                ),
                NewCellValidator(message="still in the same cell"),
            )
        ),
    }


def pipeline_for_action(pipelines: dict[str, ValidatorPipeline], action: str) -> ValidatorPipeline:
    pipe = pipelines.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
