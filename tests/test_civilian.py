"""Tests for civilian routines, scenario overrides and fleeing."""

import pytest

from city_fire_sim.model import civilian as civilian_module
from city_fire_sim.model.agent import AgentState
from city_fire_sim.model.buildings import BuildingType
from city_fire_sim.model.civilian import (
    Civilian,
    RoutineType,
    is_commuter_work_hour,
    is_night_shift_work_hour,
)
from city_fire_sim.model.context import Scenario

from conftest import put_building, road_grid

# Tick indices for a few hours of day 0
HOUR_0 = 1
HOUR_8 = 32
HOUR_10 = 40
HOUR_21 = 84


@pytest.fixture
def always_takeover(monkeypatch):
    """Scenario overrides always win the takeover roll."""
    monkeypatch.setattr(civilian_module, "SCENARIO_TAKEOVER_PROB", 1.1)


class TestWorkHours:

    @pytest.mark.parametrize("hour,expected", [(7, False), (8, True), (17, True), (18, False)])
    def test_commuter_hours(self, hour, expected):
        assert is_commuter_work_hour(hour) is expected

    @pytest.mark.parametrize("hour,expected", [(19, False), (20, True), (0, True),
                                               (5, True), (6, False)])
    def test_night_shift_hours(self, hour, expected):
        assert is_night_shift_work_hour(hour) is expected


class TestFleeing:

    def test_flees_away_from_fire(self, open_grid, make_ctx):
        person = Civilian(1, (10, 10), workplace=(15, 15))
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_8)
        ctx.registry.ignite(open_grid, (12, 10), 2.0, 0)

        person.update(ctx)

        assert person.state == AgentState.FLEEING
        assert list(person.path)[-1] == (0, 10)
        assert ctx.registry.reported == {(12, 10)}
        assert any(e.message == "Fire reported at (12, 10)." for e in ctx.events)

    def test_flee_target_clamped_to_grid(self, open_grid, make_ctx):
        person = Civilian(1, (18, 18))
        ctx = make_ctx(open_grid, agents=[person])
        ctx.registry.ignite(open_grid, (15, 15), 2.0, 0)

        person.update(ctx)

        assert list(person.path)[-1] == (19, 19)

    def test_far_fire_is_ignored(self, open_grid, make_ctx):
        person = Civilian(1, (0, 0))
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_8)
        ctx.registry.ignite(open_grid, (9, 0), 2.0, 0)

        person.update(ctx)

        assert person.state != AgentState.FLEEING
        assert not ctx.registry.reported

    def test_calms_down_once_fire_is_out_of_sight(self, open_grid, make_ctx):
        person = Civilian(1, (10, 10))
        person.state = AgentState.FLEEING
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_8)

        person.update(ctx)

        assert person.state == AgentState.PATROLLING

    def test_trapped_civilian_does_nothing(self, open_grid, make_ctx):
        person = Civilian(1, (10, 10), workplace=(15, 15))
        person.is_trapped = True
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_8)
        ctx.registry.ignite(open_grid, (11, 10), 2.0, 0)

        person.update(ctx)

        assert person.state == AgentState.AT_HOME
        assert not person.path
        assert not ctx.registry.reported

    def test_blocked_path_means_fleeing(self):
        person = Civilian(1, (0, 0))
        person.set_path([(1, 0), (2, 0)])
        person.on_path_blocked()
        assert person.state == AgentState.FLEEING
        assert not person.path


class TestRoutines:

    def test_commuter_leaves_for_work(self, open_grid, make_ctx):
        person = Civilian(1, (2, 2), workplace=(15, 15))
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_8)

        person.update(ctx)

        assert person.state == AgentState.GOING_TO_WORK
        assert list(person.path)[-1] == (15, 15)

    def test_commuter_stays_home_at_night(self, open_grid, make_ctx):
        person = Civilian(1, (2, 2), workplace=(15, 15))
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_0)

        person.update(ctx)

        assert person.state == AgentState.AT_HOME
        assert person.state_timer == 99

    def test_arrival_at_work(self, open_grid, make_ctx):
        person = Civilian(1, (2, 2), workplace=(15, 15))
        person.x, person.y = 15.0, 15.0
        person.state = AgentState.GOING_TO_WORK
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_8)

        person.update(ctx)

        assert person.state == AgentState.WORKING
        assert 99 <= person.state_timer <= 298

    def test_worker_heads_home_after_hours(self, make_ctx):
        # No shops, so the evening shopping trip never happens
        grid = road_grid()
        person = Civilian(1, (2, 2), workplace=(15, 15))
        person.x, person.y = 15.0, 15.0
        person.state = AgentState.WORKING
        person.state_timer = 50
        ctx = make_ctx(grid, agents=[person], time=HOUR_21)

        person.update(ctx)

        assert person.state == AgentState.GOING_HOME
        assert list(person.path)[-1] == (2, 2)

    def test_stay_at_home_returns_once(self, open_grid, make_ctx):
        person = Civilian(1, (2, 2), routine=RoutineType.STAY_AT_HOME)
        person.x, person.y = 10.0, 10.0
        person.state = AgentState.PATROLLING
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_8)

        person.update(ctx)
        assert person.state == AgentState.GOING_HOME
        path = list(person.path)
        assert path[-1] == (2, 2)

        person.update(ctx)
        assert list(person.path) == path

    def test_stay_at_home_stays_put(self, open_grid, make_ctx):
        person = Civilian(1, (2, 2), routine=RoutineType.STAY_AT_HOME)
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_8)
        person.update(ctx)
        assert person.state == AgentState.AT_HOME
        assert not person.path

    def test_night_shift_goes_to_work_at_night(self, open_grid, make_ctx):
        person = Civilian(1, (2, 2), workplace=(15, 15), routine=RoutineType.NIGHT_SHIFT)
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_21)

        person.update(ctx)

        assert person.state == AgentState.GOING_TO_WORK
        assert list(person.path)[-1] == (15, 15)

    def test_night_shift_goes_home_in_the_morning(self, open_grid, make_ctx):
        person = Civilian(1, (2, 2), workplace=(15, 15), routine=RoutineType.NIGHT_SHIFT)
        person.x, person.y = 15.0, 15.0
        person.state = AgentState.WORKING
        ctx = make_ctx(open_grid, agents=[person], time=HOUR_10)

        person.update(ctx)

        assert person.state == AgentState.GOING_HOME
        assert list(person.path)[-1] == (2, 2)

    def test_nearest_shop(self, make_ctx):
        grid = road_grid()
        put_building(grid, 3, 3, BuildingType.KIOSK)
        put_building(grid, 17, 17, BuildingType.KIOSK)
        person = Civilian(1, (15, 15))
        ctx = make_ctx(grid, agents=[person])
        assert person._nearest_shop(ctx) == (17, 17)


class TestScenarios:

    def test_large_event_draws_crowd(self, always_takeover, make_ctx):
        grid = road_grid()
        put_building(grid, 15, 15, BuildingType.STADIUM)
        person = Civilian(1, (5, 5), workplace=(2, 2))
        ctx = make_ctx(grid, agents=[person], scenario=Scenario.LARGE_EVENT)

        person.update(ctx)

        assert person.state == AgentState.PATROLLING
        assert list(person.path)[-1] == (15, 15)

    def test_large_event_holds_at_venue(self, always_takeover, make_ctx):
        grid = road_grid()
        put_building(grid, 15, 15, BuildingType.STADIUM)
        person = Civilian(1, (5, 5))
        person.x, person.y = 15.0, 15.0
        person.set_path([(14, 15)])
        ctx = make_ctx(grid, agents=[person], scenario=Scenario.LARGE_EVENT)

        person.update(ctx)

        assert person.state == AgentState.PATROLLING
        assert not person.path

    def test_large_event_skips_homebodies(self, always_takeover, make_ctx):
        grid = road_grid()
        put_building(grid, 15, 15, BuildingType.STADIUM)
        person = Civilian(1, (5, 5), routine=RoutineType.STAY_AT_HOME)
        ctx = make_ctx(grid, agents=[person], scenario=Scenario.LARGE_EVENT)

        person.update(ctx)

        assert person.state == AgentState.AT_HOME

    def test_riot_far_from_hotspot_marches(self, always_takeover, make_ctx):
        grid = road_grid()
        put_building(grid, 15, 15, BuildingType.TOWN_HALL)
        person = Civilian(1, (0, 0))
        ctx = make_ctx(grid, agents=[person], scenario=Scenario.RIOT)

        person.update(ctx)

        assert person.state == AgentState.PATROLLING
        assert list(person.path)[-1] == (15, 15)

    def test_riot_near_hotspot_holds(self, always_takeover, make_ctx):
        grid = road_grid()
        put_building(grid, 15, 15, BuildingType.TOWN_HALL)
        person = Civilian(1, (12, 12))
        ctx = make_ctx(grid, agents=[person], scenario=Scenario.RIOT)

        person.update(ctx)

        assert person.state == AgentState.PATROLLING
        assert not person.path

    def test_riot_only_moves_commuters(self, always_takeover, make_ctx):
        grid = road_grid()
        put_building(grid, 15, 15, BuildingType.TOWN_HALL)
        person = Civilian(1, (0, 0), workplace=(2, 2), routine=RoutineType.NIGHT_SHIFT)
        ctx = make_ctx(grid, agents=[person], scenario=Scenario.RIOT, time=HOUR_10)

        person.update(ctx)

        assert person.state == AgentState.AT_HOME
