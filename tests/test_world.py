"""Tests for the World graph store."""

from __future__ import annotations

import pytest

from invasion.core import City, Direction, Invader, World
from invasion.mapio import load_map

pytestmark = pytest.mark.unit


def test_city_name_validation():
    with pytest.raises(ValueError):
        City("")
    with pytest.raises(ValueError):
        City("two words")


def test_invader_validation():
    with pytest.raises(ValueError):
        Invader("x", "foo", moves=-1)


def test_add_city_twice():
    world = World()
    world.add_city("foo")
    with pytest.raises(ValueError):
        world.add_city("foo")


def test_add_road_checks_cities_and_direction():
    world = World()
    world.add_city("foo")
    world.add_city("bar")
    with pytest.raises(ValueError):
        world.add_road("foo", Direction.NORTH, "nowhere")
    with pytest.raises(ValueError):
        world.add_road("nowhere", Direction.NORTH, "foo")

    world.add_road("foo", Direction.NORTH, "bar")
    with pytest.raises(ValueError):
        world.add_road("foo", Direction.NORTH, "foo")


def test_remove_road():
    world = load_map(["foo north=bar east=bar", "bar south=foo"])
    world.remove_road("foo", Direction.NORTH)
    assert world.cities["foo"].roads == {Direction.EAST: "bar"}
    assert world.roads_into("bar") == [("foo", Direction.EAST)]
    with pytest.raises(ValueError):
        world.remove_road("foo", Direction.NORTH)
    world.validate()


def test_add_and_remove_invader():
    world = load_map(["foo north=bar"])
    world.add_invader("x", "foo")
    assert world.cities["foo"].invaders["x"] is world.invaders["x"]
    with pytest.raises(ValueError):
        world.add_invader("x", "bar")
    with pytest.raises(ValueError):
        world.add_invader("y", "nowhere")

    world.remove_invader("x")
    assert world.invaders == {}
    assert world.cities["foo"].invaders == {}


def test_relocate_invader():
    world = load_map(["foo north=bar", "bar south=foo"])
    world.add_invader("x", "foo")

    invader = world.relocate_invader("x", "bar")

    assert invader.location == "bar"
    assert invader.moves == 1
    assert "x" not in world.cities["foo"].invaders
    assert world.cities["bar"].invaders["x"] is invader
    world.validate()


def test_destroy_city_severs_incoming_roads(data_dir):
    world = load_map((data_dir / "map_test.txt").read_text().splitlines())
    world.add_invader("x", "foo")
    world.add_invader("y", "bar")

    casualties = world.destroy_city("foo")

    assert [i.name for i in casualties] == ["x"]
    assert "foo" not in world.cities
    assert list(world.invaders) == ["y"]
    for city in world.cities.values():
        assert "foo" not in city.roads.values()
    world.validate()


def test_destroy_city_with_self_loop():
    world = load_map(["foo north=foo east=bar", "bar west=foo"])
    world.destroy_city("foo")
    assert list(world.cities) == ["bar"]
    assert world.cities["bar"].is_dead_end
    assert world.roads_into("bar") == []
    world.validate()


def test_destroy_unknown_city():
    with pytest.raises(ValueError):
        World().destroy_city("foo")


def test_free_slots():
    world = load_map(["foo north=bar", "bar south=foo"])
    assert world.free_slots() == 4
    world.add_invader("x", "foo")
    assert world.free_slots() == 3


def test_validate_detects_out_of_sync_invader():
    world = load_map(["foo north=bar"])
    world.add_invader("x", "foo")
    world.invaders["x"].location = "bar"
    with pytest.raises(ValueError):
        world.validate()
