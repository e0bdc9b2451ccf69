"""
Entry point for running a co-evolution from the command line.

Usage:
    python -m blotto                       # Short baseline run, random seed
    python -m blotto --seed 42             # Reproducible run
    python -m blotto --evolve-both --mutation deficit
"""

import argparse
import logging

import numpy as np

from .evolution import CoevolutionEngine, CoevolutionConfig, EvolutionConfig, MatchStats


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Search for Colonel Blotto mixed strategies by co-evolution'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducibility'
    )
    parser.add_argument(
        '--battlefields', type=int, default=10,
        help='Number of battlefields (default: 10)'
    )
    parser.add_argument(
        '--troops', type=int, default=100,
        help='Troop budget per player (default: 100)'
    )
    parser.add_argument(
        '--pool-size', type=int, default=10,
        help='Schemes per player (default: 10)'
    )
    parser.add_argument(
        '--rounds', type=int, default=2_000,
        help='Rounds per match (default: 2000)'
    )
    parser.add_argument(
        '--min-matches', type=int, default=10,
        help='Matches before the stopping rule applies (default: 10)'
    )
    parser.add_argument(
        '--max-matches', type=int, default=200,
        help='Hard cap on matches (default: 200)'
    )
    parser.add_argument(
        '--evolve-both', action='store_true',
        help='Evolve whichever player loses instead of replacing player 2'
    )
    parser.add_argument(
        '--dynamic-sizing', action='store_true',
        help='Let a winning player 1 drop schemes it no longer plays'
    )
    parser.add_argument(
        '--selection', choices=['tournament', 'roulette'], default='tournament',
        help='Parent selection policy'
    )
    parser.add_argument(
        '--mutation', choices=['swap', 'deficit'], default='swap',
        help='Mutation policy'
    )
    parser.add_argument(
        '--verbose', action='store_true',
        help='Log every match'
    )
    return parser.parse_args(argv)


def progress_callback(match: int, total: int, stats: MatchStats):
    """Print progress during the run."""
    print(
        f"\r   Match {match:4d}/{total} | "
        f"P1 win rate: {stats.player1_win_rate:.3f} | "
        f"P1 support: {stats.player1_support}/{stats.player1_size}",
        end='', flush=True
    )


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s %(message)s',
    )

    config = CoevolutionConfig(
        n_battlefields=args.battlefields,
        troop_budget=args.troops,
        pool_size=args.pool_size,
        rounds_per_match=args.rounds,
        min_matches=args.min_matches,
        max_matches=args.max_matches,
        evolve_both=args.evolve_both,
        dynamic_sizing=args.dynamic_sizing,
        evolution=EvolutionConfig(selection=args.selection, mutation=args.mutation),
    )

    print("=" * 60)
    print("   COLONEL BLOTTO - Regret Matching + Co-evolution")
    print("=" * 60)
    print(f"   Battlefields: {config.n_battlefields}, troops: {config.troop_budget}, "
          f"pool size: {config.pool_size}")
    print(f"   Rounds per match: {config.rounds_per_match}, "
          f"matches: {config.min_matches}-{config.max_matches}")
    print()

    engine = CoevolutionEngine(config, rng=np.random.default_rng(args.seed))
    result = engine.run(progress_callback=None if args.verbose else progress_callback)

    print('\n')
    print(result.summary())


if __name__ == '__main__':
    main()
