"""Tests for the police state machine."""

from city_fire_sim.config import PoliceConfig, RectSpec
from city_fire_sim.model.agent import AgentState
from city_fire_sim.model.arsonist import Arsonist
from city_fire_sim.model.buildings import ArsonistProfile, BuildingType
from city_fire_sim.model.cell import CellType, RoadType
from city_fire_sim.model.police import ARREST_HOLD_TICKS, Police

from conftest import make_config, put_building, road_grid


class TestArrest:

    def test_arrests_nearby_arsonist(self, open_grid, make_ctx):
        officer = Police(1, (5, 5))
        arsonist = Arsonist(2, (6, 6), ArsonistProfile.VANDAL)
        ctx = make_ctx(open_grid, agents=[officer, arsonist])

        officer.update(ctx)

        assert arsonist.state == AgentState.APPREHENDED
        assert officer.state == AgentState.APPREHENDING
        assert officer.state_timer == ARREST_HOLD_TICKS
        assert ctx.arrests == 1
        assert not officer.path
        assert any(e.message == "Arsonist with VANDAL profile apprehended at (6, 6)."
                   for e in ctx.events)

    def test_arrest_radius_is_strict(self, open_grid, make_ctx):
        officer = Police(1, (5, 5))
        arsonist = Arsonist(2, (7, 5), ArsonistProfile.VANDAL)
        ctx = make_ctx(open_grid, agents=[officer, arsonist])

        officer.update(ctx)

        assert arsonist.state == AgentState.PATROLLING
        assert ctx.arrests == 0

    def test_already_apprehended_is_skipped(self, open_grid, make_ctx):
        officer = Police(1, (5, 5))
        caught = Arsonist(2, (5, 6), ArsonistProfile.VANDAL)
        caught.state = AgentState.APPREHENDED
        ctx = make_ctx(open_grid, agents=[officer, caught])

        officer.update(ctx)

        assert officer.state == AgentState.PATROLLING
        assert ctx.arrests == 0

    def test_hold_then_resume_patrol(self, open_grid, make_ctx):
        officer = Police(1, (5, 5))
        arsonist = Arsonist(2, (5, 6), ArsonistProfile.VANDAL)
        ctx = make_ctx(open_grid, agents=[officer, arsonist])

        officer.update(ctx)
        officer.update(ctx)
        assert officer.state == AgentState.APPREHENDING
        officer.update(ctx)
        assert officer.state == AgentState.PATROLLING
        assert ctx.arrests == 1


class TestFireSighting:

    def test_reports_fire_in_sight(self, open_grid, make_ctx):
        officer = Police(1, (5, 5))
        ctx = make_ctx(open_grid, agents=[officer])
        ctx.registry.ignite(open_grid, (13, 12), 2.0, 0)
        ctx.registry.ignite(open_grid, (10, 3), 2.0, 0)

        officer.update(ctx)

        assert ctx.registry.reported == {(10, 3)}
        assert any(e.message == "Fire reported at (10, 3)." for e in ctx.events)

    def test_reports_first_in_scan_order(self, open_grid, make_ctx):
        officer = Police(1, (5, 5))
        ctx = make_ctx(open_grid, agents=[officer])
        ctx.registry.ignite(open_grid, (6, 2), 2.0, 0)
        ctx.registry.ignite(open_grid, (3, 9), 2.0, 0)

        officer.update(ctx)

        assert ctx.registry.reported == {(3, 9)}

    def test_fire_out_of_sight_not_reported(self, open_grid, make_ctx):
        officer = Police(1, (5, 5))
        ctx = make_ctx(open_grid, agents=[officer])
        ctx.registry.ignite(open_grid, (13, 5), 2.0, 0)

        officer.update(ctx)

        assert not ctx.registry.reported

    def test_reports_while_holding(self, open_grid, make_ctx):
        officer = Police(1, (5, 5))
        officer.state = AgentState.APPREHENDING
        officer.state_timer = 2
        ctx = make_ctx(open_grid, agents=[officer])
        ctx.registry.ignite(open_grid, (6, 6), 2.0, 0)

        officer.update(ctx)

        assert ctx.registry.reported == {(6, 6)}

    def test_alarm_wording(self, make_ctx):
        grid = road_grid(10, 10)
        put_building(grid, 4, 4, BuildingType.GAS_STATION)
        grid.get_cell(4, 4).has_fire_alarm = True
        officer = Police(1, (2, 2))
        ctx = make_ctx(grid, agents=[officer])
        ctx.registry.ignite(grid, (4, 4), 2.0, 0)

        officer.update(ctx)

        assert any(e.message == "AUTOMATED ALARM: Fire detected at (4, 4)." for e in ctx.events)

    def test_report_is_idempotent(self, open_grid, make_ctx):
        officer = Police(1, (5, 5))
        ctx = make_ctx(open_grid, agents=[officer])
        ctx.registry.ignite(open_grid, (6, 6), 2.0, 0)

        officer.update(ctx)
        officer.clear_path()
        officer.update(ctx)

        reports = [e for e in ctx.events if "(6, 6)" in e.message]
        assert len(reports) == 1


class TestPatrol:

    def _patrol_grid(self):
        grid = road_grid(20, 20)
        grid.fill_rect(RectSpec(0, 10, 20, 1), CellType.ROAD, road_type=RoadType.MAIN_ROAD)
        return grid

    def test_heads_for_patrol_road(self, make_ctx):
        grid = self._patrol_grid()
        officer = Police(1, (3, 3))
        ctx = make_ctx(grid, agents=[officer])

        officer.update(ctx)

        assert officer.state == AgentState.PATROLLING
        assert officer.path
        assert list(officer.path)[-1][1] == 10

    def test_no_patrol_roads_stays_put(self, open_grid, make_ctx):
        officer = Police(1, (3, 3))
        ctx = make_ctx(open_grid, agents=[officer])
        officer.update(ctx)
        assert not officer.path

    def test_risk_weighted_patrol(self, make_ctx):
        grid = self._patrol_grid()
        put_building(grid, 17, 11, BuildingType.TOWN_HALL)
        config = make_config(20, 20, police=PoliceConfig(
            risk_weighted_patrol=True, patrol_risk_radius=2, patrol_random_weight=0.0))
        officer = Police(1, (10, 10))
        ctx = make_ctx(grid, agents=[officer], config=config)

        officer.update(ctx)

        # Only destinations near the town hall score above zero
        goal = list(officer.path)[-1]
        assert goal[1] == 10
        assert abs(goal[0] - 18) <= 3
