import argparse
import json
import os
import sys
from typing import List, Optional

from loguru import logger

from lotto645.config import CONFIG_FILE_PATH, ESTIMATED_WEEKLY_SALES
from lotto645.config_manager import ConfigurationManager, PipelineSettings
from lotto645.exceptions import LottoError


def setup_logging(log_file: str, verbose: bool = False) -> None:
    """Console sink at INFO (DEBUG when verbose) plus a rotating DEBUG file sink."""
    logger.remove()

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="DEBUG" if verbose else "INFO"
    )
    logger.add(
        log_file,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="10 MB",
        retention="30 days"
    )
    logger.info("Logging system initialized")


def non_negative_int(value: str) -> int:
    """argparse type for counts such as --carryover."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative, got {number}")
    return number


def _load_settings(args) -> PipelineSettings:
    overrides = {}
    if getattr(args, 'selector', None):
        overrides['selector'] = args.selector
    if getattr(args, 'draws', None):
        overrides['data_file'] = args.draws
    return ConfigurationManager(args.config).get_settings(overrides)


def _load_draws(settings: PipelineSettings):
    from lotto645.loader import DataLoader
    return DataLoader(settings.data_file).load_draws()


def _print_strategy(strategy) -> None:
    from lotto645.expected_value import format_krw

    ev = strategy.expected_value
    print("\n--- Recommended Combination ---")
    print("  " + "  ".join(f"{n:2d}" for n in strategy.combination))
    print(f"Method: {strategy.method}  |  R-hat: {strategy.r_hat:.4f}  |  Seed: {strategy.seed}")
    print(f"Pool ({strategy.pool_size}): {list(strategy.pool)}")
    print(f"Anti-popularity: {strategy.anti_popularity_score:.3f}  |  Structural fit: {strategy.structural_fit:.3f}"
          f"  |  Model agreement: {strategy.model_agreement:.0%}")
    print(f"Estimated jackpot: {format_krw(ev.estimated_jackpot)}  |  Per winner: {format_krw(ev.per_person_jackpot)}"
          f"  |  Co-winners: {ev.estimated_co_winners:.1f}")
    print(f"Expected value: {ev.total_ev:+.0f} KRW per ticket  |  Recommendation: {ev.recommendation.value}"
          f" (confidence {strategy.confidence_score:.2f})")
    print(strategy.rationale)
    print("-------------------------------\n")


def generate_command(args):
    """Handles the 'generate' command."""
    logger.info("Received 'generate' command.")
    try:
        from lotto645.pipeline import generate_strategy

        settings = _load_settings(args)
        draws = _load_draws(settings)
        strategy = generate_strategy(draws, timestamp_ms=args.timestamp, carryover_misses=args.carryover,
                                     settings=settings)
    except (LottoError, OSError) as e:
        logger.error(f"An error occurred during generation: {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(strategy.to_dict(), indent=2, ensure_ascii=False))
    else:
        _print_strategy(strategy)


def analyze_command(args):
    """Handles the 'analyze' command."""
    logger.info("Received 'analyze' command.")
    try:
        from lotto645.pipeline import generate_analysis

        settings = _load_settings(args)
        draws = _load_draws(settings)
        report = generate_analysis(draws, timestamp_ms=args.timestamp, carryover_misses=args.carryover,
                                   settings=settings, top_count=args.top)
    except (LottoError, OSError) as e:
        logger.error(f"An error occurred during analysis: {e}")
        sys.exit(1)

    if args.json:
        payload = {
            "total_draws": report.total_draws,
            "first_draw_number": report.first_draw_number,
            "latest_draw_number": report.latest_draw.draw_number if report.latest_draw else None,
            "next_draw_number": report.next_draw_number,
            "next_draw_date": report.next_draw_date,
            "hot_numbers": report.hot_numbers["number"].tolist(),
            "cold_numbers": report.cold_numbers["number"].tolist(),
            "chi_square": report.chi_square,
            "strategy": report.strategy.to_dict(),
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    chi = report.chi_square
    print("\n--- Draw History Analysis ---")
    print(f"Draws analysed: {report.total_draws}"
          + (f" (#{report.first_draw_number} - #{report.latest_draw.draw_number})" if report.latest_draw else ""))
    print(f"Next draw: #{report.next_draw_number} on {report.next_draw_date}")
    print("Hot numbers:")
    print(report.hot_numbers.to_string(index=False))
    print("Cold numbers:")
    print(report.cold_numbers.to_string(index=False))
    print(f"Chi-square: {chi['chi_square']:.2f} (df={chi['degrees_of_freedom']}, p={chi['p_value']:.4f}) -> "
          f"{'consistent with uniform' if chi['is_uniform'] else 'not uniform'}")
    _print_strategy(report.strategy)


def ev_command(args):
    """Handles the 'ev' command."""
    from lotto645.expected_value import calculate_expected_value, format_krw

    breakdown = calculate_expected_value(args.carryover, args.co_winners, converged=True,
                                         weekly_sales=args.weekly_sales)
    if args.json:
        print(json.dumps({
            "ev_by_rank": {str(rank): round(value, 2) for rank, value in breakdown.ev_by_rank.items()},
            "total_ev": round(breakdown.total_ev),
            "recommendation": breakdown.recommendation.value,
            "confidence_score": breakdown.confidence_score,
            "estimated_jackpot": round(breakdown.estimated_jackpot),
            "per_person_jackpot": round(breakdown.per_person_jackpot),
            "kelly_fraction": breakdown.kelly_fraction,
            "reasoning": breakdown.reasoning,
        }, indent=2, ensure_ascii=False))
        return

    print("\n--- Expected Value ---")
    for rank, value in breakdown.ev_by_rank.items():
        print(f"Rank {rank}: {value:8.2f} KRW")
    print(f"Total (net of ticket): {breakdown.total_ev:+.0f} KRW")
    print(f"Jackpot: {format_krw(breakdown.estimated_jackpot)}, per winner {format_krw(breakdown.per_person_jackpot)}")
    print(f"Recommendation: {breakdown.recommendation.value} - {breakdown.reasoning}")
    print("----------------------\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="LOTTO645 - anti-popularity strategy for Lotto 6/45")
    parser.add_argument('--config', type=str, default=CONFIG_FILE_PATH,
                        help=f"Path to configuration file (default: {CONFIG_FILE_PATH})")
    parser.add_argument('--verbose', action='store_true', help="Enable debug logging on the console")
    subparsers = parser.add_subparsers(dest='command', required=True)

    # --- Generate Command ---
    parser_generate = subparsers.add_parser('generate', help="Generate a recommended combination.")
    parser_generate.add_argument('--draws', type=str, help="CSV file of historical draws (overrides config)")
    parser_generate.add_argument('--carryover', type=non_negative_int, default=0,
                                 help="Consecutive draws without a first-prize winner")
    parser_generate.add_argument('--timestamp', type=int, default=None,
                                 help="Epoch milliseconds used as the seed (default: now)")
    parser_generate.add_argument('--selector', choices=['mcmc', 'genetic'], help="Combinatorial selector")
    parser_generate.add_argument('--json', action='store_true', help="Print the result as JSON")
    parser_generate.set_defaults(func=generate_command)

    # --- Analyze Command ---
    parser_analyze = subparsers.add_parser('analyze', help="Frequency analysis plus a recommended combination.")
    parser_analyze.add_argument('--draws', type=str, help="CSV file of historical draws (overrides config)")
    parser_analyze.add_argument('--carryover', type=non_negative_int, default=0)
    parser_analyze.add_argument('--timestamp', type=int, default=None)
    parser_analyze.add_argument('--selector', choices=['mcmc', 'genetic'])
    parser_analyze.add_argument('--top', type=int, default=6, help="Number of hot/cold numbers to show")
    parser_analyze.add_argument('--json', action='store_true')
    parser_analyze.set_defaults(func=analyze_command)

    # --- EV Command ---
    parser_ev = subparsers.add_parser('ev', help="Expected value of one ticket for a carryover state.")
    parser_ev.add_argument('--carryover', type=non_negative_int, default=0)
    parser_ev.add_argument('--co-winners', type=float, default=10.0, help="Estimated first-prize co-winners")
    parser_ev.add_argument('--weekly-sales', type=float, default=ESTIMATED_WEEKLY_SALES)
    parser_ev.add_argument('--json', action='store_true')
    parser_ev.set_defaults(func=ev_command)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point for the LOTTO645 CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        manager = ConfigurationManager(args.config)
    except LottoError as e:
        print(f"ERROR: Failed to load configuration: {e}")
        sys.exit(1)
    setup_logging(manager.get_config_value('paths', 'log_file', 'logs/lotto645.log'), verbose=args.verbose)
    args.func(args)


if __name__ == '__main__':
    main()
