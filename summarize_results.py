from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

import pandas as pd

# ---------- Helpers ----------

def find_latest_results_dir(base: Path) -> Optional[Path]:
    if not base.exists():
        return None
    dirs = [p for p in base.iterdir() if p.is_dir()]
    if not dirs:
        return None
    dirs.sort(key=lambda p: p.name, reverse=True)
    return dirs[0]


def load_csv_maybe(path: Path) -> Optional[pd.DataFrame]:
    if path.exists():
        try:
            return pd.read_csv(path)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            print(f"[warn] Could not load {path}: {e}")
    return None


def load_summary(results_dir: Path) -> Optional[pd.DataFrame]:
    return load_csv_maybe(results_dir / "experiment_summary.csv")


def _load_all(results_dir: Path, pattern: str) -> Optional[pd.DataFrame]:
    frames = []
    for f in sorted(results_dir.glob(pattern)):
        df = load_csv_maybe(f)
        if df is not None:
            frames.append(df)
    if frames:
        return pd.concat(frames, ignore_index=True)
    return None


def load_all_train(results_dir: Path) -> Optional[pd.DataFrame]:
    return _load_all(results_dir, "train_metrics_*_*.csv")


def load_all_eval(results_dir: Path) -> Optional[pd.DataFrame]:
    return _load_all(results_dir, "eval_metrics_*_*.csv")


# ---------- Tables ----------

def checkpoint_curves(eval_df: pd.DataFrame) -> pd.DataFrame:
    """
    Greedy-policy return per checkpoint, averaged over seeds: one column per variant.
    """
    agg = eval_df.groupby(["variant", "block_episode"])["mean_return"].mean().reset_index()
    return agg.pivot(index="block_episode", columns="variant", values="mean_return")


def training_tail(train_df: pd.DataFrame, frac: float = 1 / 3) -> pd.DataFrame:
    """
    Mean training return and exploration rate over the last frac of episodes.
    """
    tail_start = max(1, int(train_df["episode"].max() * (1 - frac)))
    tail = train_df[train_df["episode"] >= tail_start]
    return tail.groupby("variant")[["return", "discounted_return", "exploration_rate"]].mean()


def final_comparison(summary: pd.DataFrame) -> pd.DataFrame:
    """
    Final greedy vs. random returns per variant, mean over seeds.
    """
    out = summary.groupby("variant")[["greedy_mean", "random_mean"]].mean()
    out["gain"] = out["greedy_mean"] - out["random_mean"]
    return out


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument('--dir', type=str, default=None, help='Path to a results folder (default: newest under ./results)')
    ap.add_argument('--tail', type=float, default=1 / 3, help='Fraction of final training episodes to average')
    args = ap.parse_args(argv)

    results_dir = Path(args.dir) if args.dir else find_latest_results_dir(Path("results"))
    if results_dir is None or not results_dir.exists():
        raise SystemExit("No results directory found.")
    print(f"[info] Reading {results_dir}")

    eval_df = load_all_eval(results_dir)
    if eval_df is not None:
        print("\nGreedy return per checkpoint (mean over seeds):")
        print(checkpoint_curves(eval_df).to_string(float_format=lambda x: f"{x:.3f}"))

    train_df = load_all_train(results_dir)
    if train_df is not None:
        print("\nTraining tail:")
        print(training_tail(train_df, args.tail).to_string(float_format=lambda x: f"{x:.3f}"))

    summary = load_summary(results_dir)
    if summary is not None:
        print("\nFinal greedy vs. random:")
        print(final_comparison(summary).to_string(float_format=lambda x: f"{x:.3f}"))


if __name__ == "__main__":
    main()
