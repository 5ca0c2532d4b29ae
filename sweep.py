import argparse
import sys
import subprocess
from itertools import product
from pathlib import Path
from typing import Dict, Iterator, List

PY = sys.executable
SCRIPT = Path(__file__).parent / "run_experiment.py"

# run_experiment.py options swept over; every combination is one run
GRID: Dict[str, list] = {
    "--episodes": [100, 500],
    "--eps": [0.3, 0.9],
    "--alpha": [0.1, 0.5],
    "--eval_every": [10],
}


def sweep_commands(grid: Dict[str, list], results: str, n_seeds: int) -> Iterator[List[str]]:
    """
    One run_experiment.py command line per grid combination, all writing under results.
    """
    keys = list(grid)
    for combo in product(*(grid[k] for k in keys)):
        args = [PY, str(SCRIPT), "--results", results, "--n_seeds", str(n_seeds)]
        for k, v in zip(keys, combo):
            args += [k, str(v)]
        yield args


def main(argv=None) -> None:
    ap = argparse.ArgumentParser(description="Parameter sweep over run_experiment.py")
    ap.add_argument("--results", type=str, default="results/sweep", help="Results root for every run")
    ap.add_argument("--n_seeds", type=int, default=3, help="Seeds per variant in each run")
    ap.add_argument("--dry_run", action="store_true", help="Print the commands without running them")
    args = ap.parse_args(argv)

    for cmd in sweep_commands(GRID, args.results, args.n_seeds):
        print(">>", " ".join(cmd[1:]))
        if not args.dry_run:
            # output is passed straight through
            subprocess.run(cmd, check=True)


if __name__ == "__main__":
    main()
