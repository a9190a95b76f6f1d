"""Explorer swarm: how much does gossip speed up mapping?

A few explorers start in one corner of a cave with scattered rock. Each
turn every explorer maps what it can see, merges the maps its visible
teammates published last turn, and walks toward the nearest unexplored
cell. The same cave is run twice, with and without gossip, and the
number of turns until each explorer knows every open cell is compared.

## Timeline

```
turn 0         first contact       team fully mapped
|------------------|-----------------------|
  explorers fan      maps merge on          frontier empty,
  out from corner    every sighting         explorers idle
```

Without gossip each explorer must walk the whole cave itself. With
gossip an explorer's frontier shrinks whenever a teammate who has been
elsewhere comes into view.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from gossipgrid import AgentRuntime, GossipConfig, GridWorld, Loc
from gossipgrid.sim import ExplorerState


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True)
class SwarmConfig:
    """Configuration for the explorer swarm.

    Attributes:
        width: Cave width in cells.
        height: Cave height in cells.
        rock_density: Fraction of cells turned into rock.
        explorers: Number of explorers.
        visibility: Chebyshev sight radius.
        max_turns: Turn limit.
        seed: Random seed for the cave layout.
    """

    width: int = 24
    height: int = 16
    rock_density: float = 0.15
    explorers: int = 3
    visibility: int = 2
    max_turns: int = 400
    seed: int | None = 7


@dataclass
class SwarmResult:
    """Outcome of one run."""

    gossip: bool
    world: GridWorld
    history: pd.DataFrame
    turns_to_full_map: dict[str, int | None]


# =============================================================================
# Simulation
# =============================================================================


def build_cave(config: SwarmConfig) -> tuple[set[Loc], list[Loc]]:
    """Scatter rock, keeping the spawn corner clear."""
    rng = random.Random(config.seed)
    spawns = [Loc(i, 0) for i in range(config.explorers)]
    rock = {
        Loc(x, y)
        for x in range(config.width)
        for y in range(config.height)
        if rng.random() < config.rock_density and Loc(x, y) not in spawns
    }
    return rock, spawns


def run_swarm(config: SwarmConfig, gossip: bool) -> SwarmResult:
    rock, spawns = build_cave(config)
    world = GridWorld(config.width, config.height, walls=rock, visibility=config.visibility)
    for i, spawn in enumerate(spawns):
        name = f"explorer-{i}"
        runtime = AgentRuntime(ExplorerState, name=name, gossip=GossipConfig(enabled=gossip))
        world.add_agent(name, spawn, "blue", runtime)

    # open cells walled off from the spawn can never be seen
    targets = reachable_cells(world, spawns[0])
    done: dict[str, int | None] = {slot.name: None for slot in world.slots()}

    while world.turn < config.max_turns and any(t is None for t in done.values()):
        world.step()
        for name, finished in done.items():
            if finished is not None:
                continue
            known = world.agent_state(name).report.world.tiles
            if all(loc in known for loc in targets):
                done[name] = world.turn

    return SwarmResult(gossip=gossip, world=world, history=world.history(), turns_to_full_map=done)


def reachable_cells(world: GridWorld, start: Loc) -> set[Loc]:
    """Open cells connected to ``start`` by king moves."""
    seen = {start}
    stack = [start]
    while stack:
        here = stack.pop()
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                n = here.offset(dx, dy)
                if n not in seen and world.is_open(n):
                    seen.add(n)
                    stack.append(n)
    return seen


# =============================================================================
# Output
# =============================================================================


def print_summary(results: list[SwarmResult]) -> None:
    """Print turns-to-full-map per explorer for each run."""
    print("\n" + "=" * 60)
    print("EXPLORER SWARM RESULTS")
    print("=" * 60)
    for result in results:
        label = "gossip on " if result.gossip else "gossip off"
        turns = ", ".join(
            f"{name}={t if t is not None else 'never'}" for name, t in sorted(result.turns_to_full_map.items())
        )
        payload = result.history["broadcast_bytes"].max()
        print(f"  {label}: {turns}  (largest broadcast {payload} bytes)")


def visualize_results(results: list[SwarmResult], output_dir: Path) -> None:
    """Knowledge curves for both runs plus the final map of one explorer."""
    import matplotlib.pyplot as plt

    from gossipgrid.visual import render_map

    output_dir.mkdir(parents=True, exist_ok=True)
    fig, axes = plt.subplots(1, len(results) + 1, figsize=(6 * (len(results) + 1), 5))

    for ax, result in zip(axes, results):
        for agent, group in result.history.groupby("agent"):
            ax.plot(group["turn"], group["known_tiles"], label=agent)
        ax.set_title(f"Known tiles (gossip {'on' if result.gossip else 'off'})")
        ax.set_xlabel("turn")
        ax.legend(fontsize="small")

    gossiping = next(r for r in results if r.gossip)
    slot = gossiping.world.slots()[0]
    render_map(gossiping.world.agent_state(slot.name).report.world, ax=axes[-1], agent=slot.loc)
    axes[-1].set_title(f"{slot.name} map (gossip on)")

    fig.tight_layout()
    fig.savefig(output_dir / "explorer_swarm.png", dpi=150)
    plt.close(fig)


# =============================================================================
# Main
# =============================================================================


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Explorer swarm with and without gossip")
    parser.add_argument("--width", type=int, default=24, help="Cave width")
    parser.add_argument("--height", type=int, default=16, help="Cave height")
    parser.add_argument("--rock", type=float, default=0.15, help="Rock density (0-1)")
    parser.add_argument("--explorers", type=int, default=3, help="Number of explorers")
    parser.add_argument("--visibility", type=int, default=2, help="Sight radius")
    parser.add_argument("--turns", type=int, default=400, help="Turn limit")
    parser.add_argument("--seed", type=int, default=7, help="Random seed (use -1 for random)")
    parser.add_argument("--output", type=str, default="output/explorer_swarm", help="Output directory")
    parser.add_argument("--no-viz", action="store_true", help="Skip visualization generation")
    args = parser.parse_args()

    config = SwarmConfig(
        width=args.width,
        height=args.height,
        rock_density=args.rock,
        explorers=args.explorers,
        visibility=args.visibility,
        max_turns=args.turns,
        seed=None if args.seed == -1 else args.seed,
    )

    print("Running explorer swarm...")
    print(f"  Cave: {config.width}x{config.height}, rock density {config.rock_density}")
    print(f"  Explorers: {config.explorers}, visibility {config.visibility}")

    results = [run_swarm(config, gossip=True), run_swarm(config, gossip=False)]
    print_summary(results)

    if not args.no_viz:
        output_dir = Path(args.output)
        visualize_results(results, output_dir)
        print(f"\nVisualizations saved to: {output_dir.absolute()}")
