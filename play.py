import argparse

from tqdm import tqdm

from config import Config
from flightgame.bot import TakeoffPilot
from flightgame.core import World
from flightgame.obstacles import ObstacleLevel
from flightgame.render_3d import Render3D
from flightgame.utils.logger import FlightRecorder


def build_world(args, cfg):
    world = World(cfg, seed=args.seed, staged_terrain=True, obstacle_level=args.level)

    # Terrain is generated one stage per call; show it as a progress bar
    with tqdm(total=100, desc="Terrain", unit="%") as bar:
        def progress(report):
            bar.set_postfix_str(report.message)
            bar.update(int(round(report.progress * 100)) - bar.n)

        if args.staged:
            # Let the game loop drive generation, one stage per tick
            while not world.terrain_ready():
                world.tick(cfg.DT)
                progress(world.terrain.report())
            world.restart()
        else:
            world.terrain.run(progress)
    return world


def play(args):
    cfg = Config
    if args.detail is not None:
        class DetailConfig(Config):
            TERRAIN_DETAIL_LEVEL = args.detail
            TERRAIN_SIZE = 2 ** args.detail + 1
        cfg = DetailConfig

    world = build_world(args, cfg)
    pilot = TakeoffPilot(cfg)
    recorder = FlightRecorder(args.record_dir) if args.record_dir else None
    renderer = Render3D(cfg) if args.html else None

    print(f"Obstacles: {ObstacleLevel(world.obstacles.level).name} ({len(world.obstacles)} aircraft)")
    print("Running simulation...")

    max_ticks = int(args.seconds / cfg.DT)
    tick = 0
    try:
        for tick in range(max_ticks):
            state = world.flight.state()
            keys = pilot.get_keys(state)
            outcome = world.tick(cfg.DT, keys)

            if recorder is not None:
                recorder.log_step(0, tick, world.flight.state(), world.controls, outcome)
            if renderer is not None:
                renderer.update_trail(world.snapshot())

            if outcome.is_terminal:
                break
    except KeyboardInterrupt:
        print("Stopping...")

    state = world.flight.state()
    print(f"Finished after {tick + 1} ticks ({state.elapsed:.1f}s simulated)")
    print(f"Position: ({state.position[0]:.4f}, {state.position[1]:.4f}, {state.position[2]:.4f})"
          f" speed {state.signed_speed:.5f} {'grounded' if state.grounded else 'airborne'}")
    print(world.outcome.message)

    if recorder is not None:
        filename = recorder.save_session(0)
        if filename:
            print(f"Flight record saved to {filename}")

    if renderer is not None:
        fig = renderer.create_figure(world.snapshot())
        renderer.save_html(fig, args.html)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the flight game with a scripted pilot")
    parser.add_argument("--level", type=int, default=None, choices=[0, 1, 2],
                        help="Obstacle level: 0 none, 1 static, 2 moving")
    parser.add_argument("--seconds", type=float, default=120.0, help="Simulated seconds to run")
    parser.add_argument("--seed", type=int, default=None, help="Seed for terrain and obstacles")
    parser.add_argument("--detail", type=int, default=None, help="Terrain detail level (grid side 2^L + 1)")
    parser.add_argument("--record-dir", type=str, default=None, help="Write a CSV flight record to this directory")
    parser.add_argument("--html", type=str, default=None, help="Save a 3D view of the final state to this file")
    parser.add_argument("--staged", action="store_true",
                        help="Generate terrain inside the game loop, one stage per tick")
    args = parser.parse_args()

    play(args)
