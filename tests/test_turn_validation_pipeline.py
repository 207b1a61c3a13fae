from __future__ import annotations

import pytest

from gridmerge.config import GameConfig
from gridmerge.core.coords import Coordinate
from gridmerge.turn_processing.validators import (
    ActivationRejected,
    ValidationContext,
    build_pipelines,
    pipeline_for_action,
)


def test_proximity_validator_uses_king_move_distance(make_session) -> None:
    session = make_session()
    pipe = pipeline_for_action(build_pipelines(GameConfig()), "activate")

    for target in [Coordinate(0, 0), Coordinate(1, 1), Coordinate(-1, 1), Coordinate(0, -1)]:
        pipe.validate(ctx=ValidationContext(action="activate", target=target), session=session)

    with pytest.raises(ActivationRejected) as e:
        pipe.validate(ctx=ValidationContext(action="activate", target=Coordinate(2, 1)), session=session)
    assert str(e.value) == "too far away"


def test_proximity_radius_is_configurable(make_session) -> None:
    session = make_session()
    pipe = pipeline_for_action(build_pipelines(GameConfig(proximity_radius=3)), "activate")

    pipe.validate(ctx=ValidationContext(action="activate", target=Coordinate(-3, 3)), session=session)
    with pytest.raises(ActivationRejected):
        pipe.validate(ctx=ValidationContext(action="activate", target=Coordinate(4, 0)), session=session)


def test_click_move_denied_when_feed_drives_position(make_session) -> None:
    session = make_session()
    pipe = pipeline_for_action(build_pipelines(GameConfig(movement_mode="external-feed")), "move")

    with pytest.raises(ActivationRejected) as e:
        pipe.validate(ctx=ValidationContext(action="move", target=Coordinate(0, 1)), session=session)
    assert str(e.value) == "movement is externally controlled"


def test_position_feed_denied_in_manual_mode(make_session) -> None:
    session = make_session()
    pipe = pipeline_for_action(build_pipelines(GameConfig()), "position")

    with pytest.raises(ActivationRejected) as e:
        pipe.validate(ctx=ValidationContext(action="position", target=Coordinate(5, 5)), session=session)
    assert str(e.value) == "movement is controlled by clicks"


def test_rejections_are_value_errors() -> None:
    assert issubclass(ActivationRejected, ValueError)


def test_unknown_action_pipeline_raises() -> None:
    with pytest.raises(ValueError) as e:
        pipeline_for_action(build_pipelines(GameConfig()), "teleport")
    assert "Unknown action" in str(e.value)
