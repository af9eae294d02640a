"""Tests for the firefighter state machine."""

from city_fire_sim.model.agent import AgentState
from city_fire_sim.model.buildings import BuildingType
from city_fire_sim.model.cell import Cell, CellType
from city_fire_sim.model.firefighter import EXTINGUISH_TICKS, Firefighter

from conftest import put_building, road_grid


def burning_city(fire_at=(8, 0)):
    """A 10x3 road strip with one house to set alight."""
    grid = road_grid(10, 3)
    put_building(grid, *fire_at, BuildingType.SINGLE_FAMILY_HOME)
    return grid


def ignite_and_report(ctx, key, level=4.0):
    ctx.registry.ignite(ctx.grid, key, level, ctx.time)
    ctx.registry.report(key)


class TestDispatch:

    def test_claims_nearest_reported_fire(self, make_ctx):
        grid = road_grid(20, 3)
        put_building(grid, 5, 0)
        put_building(grid, 15, 0)
        ff = Firefighter(1, (0, 1))
        ctx = make_ctx(grid, agents=[ff])
        ignite_and_report(ctx, (5, 0))
        ignite_and_report(ctx, (15, 0))

        ff.update(ctx)

        assert ff.state == AgentState.RESPONDING
        assert ff.target == (5, 0)
        assert ctx.registry.claimed == {(5, 0)}
        assert list(ff.path)[-1] == (5, 0)
        assert any("dispatched to fire at (5, 0)" in e.message for e in ctx.events)

    def test_two_firefighters_never_share_a_fire(self, make_ctx):
        grid = burning_city()
        first = Firefighter(1, (0, 1))
        second = Firefighter(2, (0, 2))
        ctx = make_ctx(grid, agents=[first, second])
        ignite_and_report(ctx, (8, 0))

        first.update(ctx)
        second.update(ctx)

        assert first.state == AgentState.RESPONDING
        assert second.state == AgentState.IDLE
        assert second.target is None

    def test_unreported_fire_is_ignored(self, make_ctx):
        grid = burning_city()
        ff = Firefighter(1, (0, 1))
        ctx = make_ctx(grid, agents=[ff])
        ctx.registry.ignite(grid, (8, 0), 4.0, 0)

        ff.update(ctx)
        assert ff.state == AgentState.IDLE

    def test_unreachable_fire_is_not_claimed(self, make_ctx):
        grid = burning_city()
        for y in range(3):
            grid.set_cell(Cell(x=4, y=y, cell_type=CellType.WATER))
        ff = Firefighter(1, (0, 1))
        ctx = make_ctx(grid, agents=[ff])
        ignite_and_report(ctx, (8, 0))

        ff.update(ctx)

        assert ff.state == AgentState.IDLE
        assert not ctx.registry.claimed

    def test_responding_firefighter_ignores_heat_and_moves_fast(self):
        ff = Firefighter(1, (0, 0))
        ff.state = AgentState.RESPONDING
        assert ff.fire_exempt
        assert ff.speed_multiplier() == 4.0
        ff.state = AgentState.IDLE
        assert not ff.fire_exempt
        assert ff.speed_multiplier() == 1.0


class TestExtinguish:

    def _on_scene(self, make_ctx, station=(0, 1)):
        grid = burning_city()
        ff = Firefighter(1, station)
        ctx = make_ctx(grid, agents=[ff])
        ignite_and_report(ctx, (8, 0))
        ff.update(ctx)
        ff.clear_path()
        ff.x, ff.y = 8.0, 0.0
        return ff, ctx

    def test_full_cycle_credits_once(self, make_ctx):
        ff, ctx = self._on_scene(make_ctx)

        ff.update(ctx)  # arrive
        assert ff.state == AgentState.EXTINGUISHING
        assert ff.state_timer == EXTINGUISH_TICKS

        for _ in range(EXTINGUISH_TICKS):
            ff.update(ctx)

        assert ctx.fires_extinguished == 1
        assert ff.extinguished_fires == 1
        assert ctx.grid.get_cell(8, 0).fire_level == 0
        assert not ctx.registry.burning
        assert not ctx.registry.reported
        assert not ctx.registry.claimed
        assert ff.state == AgentState.RETURNING
        assert list(ff.path)[-1] == (0, 1)
        assert any(e.message == "Fire extinguished at (8, 0)." for e in ctx.events)

    def test_stays_idle_when_more_fires_reported(self, make_ctx):
        ff, ctx = self._on_scene(make_ctx)
        ctx.registry.report((3, 2))
        ff.update(ctx)
        for _ in range(EXTINGUISH_TICKS):
            ff.update(ctx)
        assert ff.state == AgentState.IDLE

    def test_returning_becomes_idle_at_station(self, make_ctx):
        ff = Firefighter(1, (0, 1))
        ff.state = AgentState.RETURNING
        ff.update(make_ctx(road_grid(3, 3), agents=[ff]))
        assert ff.state == AgentState.IDLE

    def test_target_burnt_out_before_arrival(self, make_ctx):
        ff, ctx = self._on_scene(make_ctx)
        ctx.grid.get_cell(8, 0).burn_out()
        ctx.registry.burn_out((8, 0))

        ff.update(ctx)

        assert ff.state == AgentState.IDLE
        assert ff.target is None
        assert ctx.fires_extinguished == 0

    def test_target_gone_during_extinguishing(self, make_ctx):
        ff, ctx = self._on_scene(make_ctx)
        ff.update(ctx)
        ctx.grid.get_cell(8, 0).burn_out()
        ctx.registry.burn_out((8, 0))

        for _ in range(EXTINGUISH_TICKS):
            ff.update(ctx)

        assert ff.state == AgentState.IDLE
        assert ctx.fires_extinguished == 0
        assert not ctx.registry.claimed

    def test_converging_firefighters_credit_once(self, make_ctx):
        grid = burning_city()
        first = Firefighter(1, (0, 1))
        second = Firefighter(2, (0, 2))
        ctx = make_ctx(grid, agents=[first, second])
        ignite_and_report(ctx, (8, 0))
        for ff in (first, second):
            ff.target = (8, 0)
            ff.x, ff.y = 8.0, 0.0
            ff.state = AgentState.EXTINGUISHING
            ff.state_timer = 1

        first.update(ctx)
        second.update(ctx)

        assert ctx.fires_extinguished == 1
        assert first.extinguished_fires + second.extinguished_fires == 1
        assert sum(1 for e in ctx.events if e.message.startswith("Fire extinguished")) == 1
        assert second.state == AgentState.IDLE
