from __future__ import annotations

import argparse
import csv
import json
import logging
import subprocess
from dataclasses import asdict
from pathlib import Path
from typing import Callable, List, Tuple
from datetime import datetime

import numpy as np

from corridor_gym import CorridorEnv
from tabq.errors import ConfigurationError
from tabq.evaluation import evaluate
from tabq.exploration_schedules import EpsilonGreedy, EZGreedy, annealed_linear, eps_for_ez, fixed_eps_schedule
from tabq.gym_adapter import ToyTextEnvironment
from tabq.policies import RandomPolicy
from tabq.qlearner import QLearner, TrainerConfig, check_discount

log = logging.getLogger("tabq")


def _print_progress(current: int, total: int, schedule_label: str, seed: int) -> None:
    """
    Print a progress bar to the console
    """
    width = 30
    filled = int(width * current / total)
    bar = "#" * filled + "-" * (width - filled)
    msg = f"\r[{schedule_label} seed {seed}] |{bar}| {current}/{total}"
    print(msg, end="", flush=True)

def get_git_commit() -> str:
    """
    Return the current Git commit hash.
    """
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"

def make_env(args: argparse.Namespace):
    """
    Build the environment named by --env: the corridor, or a gymnasium toy-text id.
    """
    if args.env == "corridor":
        return CorridorEnv(
            n_states=args.n_states,
            start=args.start if args.start > 0 else None,
            r_left=args.r_left,
            r_right=args.r_right,
            gamma=args.gamma,
            horizon=args.horizon,
        )
    return ToyTextEnvironment.from_id(args.env, gamma=args.gamma)


def run_single_experiment(
    env,  # environment implementing the tabq.environment contract
    schedule_label: str,  # which exploration schedule to use
    eps_fn: Callable[[int, int], float],  # function to compute epsilon
    seed: int,  # random seed for reproducibility
    config: TrainerConfig,  # episodes, step caps, learning rate and checkpoint cadence
    k_repeat: int,  # number of steps to repeat an exploratory action in EZ-Greedy
    final_eval_episodes: int,  # rollouts for the final greedy-vs-random comparison
):
    """
    Train one agent with the given exploration schedule and compare its final
    greedy policy with a uniformly random policy, evaluated identically.

    Returns the policy, the per-episode training rows, the checkpoint rows and a
    summary dict.
    """
    exploration = EZGreedy(env, k=k_repeat) if schedule_label == "EZ" else EpsilonGreedy(env)
    agent = QLearner(env, config, exploration=exploration, eps_fn=eps_fn, seed=seed)

    policy = agent.train(progress=lambda cur, tot: _print_progress(cur, tot, schedule_label, seed))
    print() # Newline after progress bar

    discount = env.discount()
    # greedy and random rollouts share one evaluation seed
    greedy_mean, greedy_std = evaluate(
        policy, env, final_eval_episodes, config.eval_max_steps, discount,
        np.random.default_rng(seed + 1_000_000),
    )
    random_policy = RandomPolicy(env.actions(), np.random.default_rng(seed + 2_000_000))
    random_mean, random_std = evaluate(
        random_policy, env, final_eval_episodes, config.eval_max_steps, discount,
        np.random.default_rng(seed + 1_000_000),
    )

    train_rows = [
        {
            "variant": schedule_label,
            "seed": seed,
            "episode": r.episode,
            "return": r.ret,
            "discounted_return": r.discounted_return,
            "steps": r.steps,
            "epsilon": r.epsilon,
            "terminated": int(r.terminated),
            "exploration_steps": r.exploration_steps,
            "exploration_rate": r.exploration_steps / max(1, r.steps),
        }
        for r in agent.episodes
    ]
    eval_rows = [
        {
            "block_episode": s.episode,
            "variant": schedule_label,
            "seed": seed,
            "mean_return": s.mean_return,
            "std_return": s.std_return,
        }
        for s in agent.stats
    ]
    summary = {
        "variant": schedule_label,
        "seed": seed,
        "greedy_mean": greedy_mean,
        "greedy_std": greedy_std,
        "random_mean": random_mean,
        "random_std": random_std,
    }
    log.info(
        "[%s seed %d] greedy %.4f +/- %.4f | random %.4f +/- %.4f",
        schedule_label, seed, greedy_mean, greedy_std, random_mean, random_std,
    )
    return policy, train_rows, eval_rows, summary


def _write_rows(path: Path, rows: List[dict]) -> None:
    if not rows:
        return
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(rows[0]))
        writer.writeheader()
        writer.writerows(rows)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tabular Q-learning experiment"
    )
    parser.add_argument(
        "--env", type=str, default="corridor",
        help="'corridor' or a gymnasium toy-text id such as FrozenLake-v1"
    )
    parser.add_argument(
        "--episodes", "-p", type=int, default=100,
        help="Number of training episodes per seed"
    )
    parser.add_argument(
        "--horizon", "-l", type=int, default=100,
        help="Maximum number of steps per training episode"
    )
    parser.add_argument(
        "--n_states", "-n", type=int, default=10,
        help="Corridor length"
    )
    parser.add_argument(
        "--start", type=int, default=4,
        help="Corridor start state (0 for uniform over non-terminal states)"
    )
    parser.add_argument(
        "--r_left", type=float, default=1.0,
        help="Reward for reaching the left end of the corridor"
    )
    parser.add_argument(
        "--r_right", type=float, default=10.0,
        help="Reward for reaching the right end of the corridor"
    )
    parser.add_argument(
        "--k_repeat", "-k", type=int, default=3,
        help="Repetition length for EZ-Greedy"
    )
    parser.add_argument(
        "--eps", "-e", type=float, default=0.9,
        help="Base ε for fixed ε-greedy"
    )
    parser.add_argument(
        "--alpha", "-a", type=float, default=0.1,
        help="Learning rate α"
    )
    parser.add_argument(
        "--gamma", "-g", type=float, default=0.9,
        help="Discount factor γ"
    )
    parser.add_argument(
        "--seed", "-s", type=int, default=10,
        help="Starting seed (uses seed, seed+1, …)"
    )
    parser.add_argument(
        "--n_seeds", type=int, default=5,
        help="Number of seeds per variant"
    )
    parser.add_argument(
        "--scale", "-c", type=int, default=1,
        help="EZ Scaling (0 for no scaling, 1 for scaling)"
    )
    parser.add_argument(
        "--eps_start", "-es", type=float, default=1.0,
        help="Starting ε for the annealed schedule"
    )
    parser.add_argument(
        "--eps_end", "-ee", type=float, default=0.05,
        help="Final ε for the annealed schedule"
    )
    parser.add_argument(
        "--eval_every", type=int, default=10,
        help="Run an evaluation block every N training episodes"
    )
    parser.add_argument(
        "--eval_episodes", type=int, default=100,
        help="Number of eval episodes per evaluation block and for the final comparison"
    )
    parser.add_argument(
        "--eval_max_steps", type=int, default=10,
        help="Maximum number of steps per evaluation rollout"
    )
    parser.add_argument(
        "--results", type=str, default="results",
        help="Directory the timestamped results folder is created in"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Log every training episode"
    )
    return parser


def main(argv: List[str] | None = None) -> Path:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    n_episodes = args.episodes
    horizon = args.horizon
    k_repeat = args.k_repeat
    eps = args.eps
    alpha = args.alpha
    gamma = args.gamma
    base_seed = args.seed

    try:
        config = TrainerConfig(
            n_episodes=n_episodes,
            max_steps=horizon,
            alpha=alpha,
            eval_every=args.eval_every,
            n_eval_traj=args.eval_episodes,
            eval_max_steps=args.eval_max_steps,
        )
        eps_ez = eps_for_ez(eps, k_repeat) if args.scale == 1 else eps # scale ε for EZ-Greedy
        variants: List[Tuple[str, Callable[[int, int], float]]] = [
            ("Fixed", fixed_eps_schedule(eps)),
            ("EZ", fixed_eps_schedule(eps_ez)),
            ("Annealed", annealed_linear(args.eps_start, args.eps_end, horizon, n_episodes)),
        ]
        env = make_env(args)
        check_discount(env.discount())
    except ValueError as e: # ConfigurationError included
        raise SystemExit(f"invalid configuration: {e}")

    seeds = list(range(base_seed, base_seed + args.n_seeds))

    # create timestamped results directory
    timestamp = datetime.now().strftime("%Y_%m_%d_%H%M%S")
    results_dir = Path(args.results) / f"{timestamp}_({args.env}_{n_episodes}ep_{horizon}h_{eps:.2f}e_{alpha:.2f}a_{gamma:.2f}g)"
    results_dir.mkdir(parents=True, exist_ok=True)

    meta = {
        "git_commit": get_git_commit(),
        "env": args.env,
        "n_states": args.n_states,
        "start": args.start,
        "r_left": args.r_left,
        "r_right": args.r_right,
        "k_repeat": k_repeat,
        "eps": eps,
        "eps_ez": eps_ez,
        "eps_start": args.eps_start,
        "eps_end": args.eps_end,
        "gamma": gamma,
        "seeds": seeds,
        "scaling": args.scale,
        "config": asdict(config),
    }
    with (results_dir / "run_meta.json").open("w") as mf:
        json.dump(meta, mf, indent=2)

    summary_rows: List[dict] = []
    for label, eps_fn in variants:
        for seed in seeds:
            policy, train_rows, eval_rows, summary = run_single_experiment(
                env, label, eps_fn, seed, config,
                k_repeat=k_repeat,
                final_eval_episodes=args.eval_episodes,
            )
            _write_rows(results_dir / f"train_metrics_{label}_{seed}.csv", train_rows)
            _write_rows(results_dir / f"eval_metrics_{label}_{seed}.csv", eval_rows)
            with (results_dir / f"policy_{label}_{seed}.json").open("w") as pf:
                json.dump(policy.to_dict(), pf, indent=2)
            summary_rows.append(summary)

    out_file = results_dir / "experiment_summary.csv"
    _write_rows(out_file, summary_rows)

    print(f"Results saved to → {out_file}")
    print(f"Metadata saved to → {results_dir / 'run_meta.json'}")
    return results_dir


if __name__ == "__main__":
    main()
