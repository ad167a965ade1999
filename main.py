# main.py
import argparse

from fog_mobility.app.build import build
from fog_mobility.io.config import load_scenario


def run(scenario: str, until: float | None = None, seed: int | None = None) -> int:
    model = load_scenario(scenario)
    app = build(model, pathing_seed=seed)
    return app.run(until=until)


if __name__ == "__main__":
    p = argparse.ArgumentParser(description="Run a fog mobility scenario")
    p.add_argument("scenario", help="scenario JSON file")
    p.add_argument("--until", type=float, default=None, help="stop time (sim seconds)")
    p.add_argument("--seed", type=int, default=None, help="reseed every pathing strategy")
    args = p.parse_args()
    run(args.scenario, until=args.until, seed=args.seed)
