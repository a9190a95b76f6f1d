"""
Shared pytest fixtures for gossipgrid tests.
"""

import logging
from pathlib import Path

import pytest

from gossipgrid.agent.world import Creature, Item, Tile
from gossipgrid.core.loc import Loc


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Returns the root test_output directory. Created once per test session.
    Files here persist after tests complete for easy access.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Returns a directory for the current test to write output files.
    Directory structure: test_output/<module_name>/<test_name>/
    """
    module_name = request.module.__name__.split(".")[-1]
    test_name = request.node.name

    test_dir = test_output_root / module_name / test_name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture(autouse=True)
def reset_gossipgrid_logging():
    """Reset logging state before and after each test.

    Leaves only the library's NullHandler and an inherited level, so one
    test's logging setup never leaks into the next.
    """
    logger = logging.getLogger("gossipgrid")

    def reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    reset()
    yield
    reset()


class FakeView:
    """Scriptable WorldView for unit tests.

    Tiles default to passable; pass ``walls`` for impassable ones. Everything
    the agent writes (store, broadcast) is kept on the instance.
    """

    def __init__(
        self,
        here=Loc(0, 0),
        *,
        turn=0,
        level="surface",
        faction="blue",
        tiles=None,
        walls=(),
        radius=None,
        creatures=None,
        items=None,
        store=b"",
    ):
        self.here = here
        self._turn = turn
        self._level = level
        self.faction = faction
        if tiles is None:
            tiles = {}
            if radius is not None:
                for dx in range(-radius, radius + 1):
                    for dy in range(-radius, radius + 1):
                        tiles[here.offset(dx, dy)] = Tile(True)
        self.tiles = dict(tiles)
        for wall in walls:
            self.tiles[wall] = Tile(False)
        self.creatures = dict(creatures or {})
        self.items = dict(items or {})
        self.store = store
        self.published = None

    @property
    def turn(self):
        return self._turn

    @property
    def level(self):
        return self._level

    def actor(self):
        return self.here, Creature(self.faction, self.published, "me")

    def visible_tiles(self):
        return dict(self.tiles)

    def visible_creatures(self):
        return dict(self.creatures)

    def visible_items(self):
        return dict(self.items)

    def item_at(self, loc):
        return self.items.get(loc)

    def load_store(self):
        return self.store

    def save_store(self, data):
        self.store = data

    def broadcast(self, data):
        self.published = data


@pytest.fixture
def make_view():
    """Factory for FakeView instances."""
    return FakeView


@pytest.fixture
def exit_item() -> Item:
    return Item("Exit")
