#!/usr/bin/env python3
"""CLI to fetch a Chess.com player's games and evaluate every move with a UCI engine."""

import argparse
import asyncio
import datetime
import logging
import os
import sys

# Add fetchers/ to import path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "fetchers"))

from chesscom_fetcher import ChessCom_Fetcher
from chessgame import ChessGame
from game_filter import filter_games_by_time_class, iter_months, parse_month
from game_analyser import (AnalysisError, DEFAULT_MOVETIME_MS, GameAnalyser,
                           format_analysis_table)
from uci_session import EngineStartupError, UCISession


async def fetch_games(username, months, include_tc=None, exclude_tc=None):
    """Fetch and parse games played in the given (year, month) list, oldest first."""
    fetcher = ChessCom_Fetcher(user_agent="chess_move_analyser/1.0")

    first, last = datetime.date(*months[0], 1), datetime.date(*months[-1], 1)
    print(f"Fetching games for user '{username}' from "
          f"{first.strftime('%b %Y')} to {last.strftime('%b %Y')}")
    raw_games = await fetcher.fetch_games_in_range(username, months)

    games = [g for g in (ChessGame.from_json(g, username) for g in raw_games) if g is not None]

    if include_tc or exclude_tc:
        before = len(games)
        games = filter_games_by_time_class(games, include=include_tc, exclude=exclude_tc)
        label = ", ".join(sorted(include_tc)) if include_tc else f"excluding {', '.join(sorted(exclude_tc))}"
        print(f"  Time control filter ({label}): {before} -> {len(games)} games")

    return games


def list_games(games):
    print("--- Games Found ---")
    for i, game in enumerate(games, start=1):
        print(game.summary_line(i))
    print("-------------------")


def analyse_game_moves(analyser, game):
    """Run the engine over a game and print the move table.

    Returns False if the game could not be analysed.
    """
    print("\nAnalysing game... this may take a moment.")

    def progress(current, total):
        print(f"  Evaluated move {current}/{total}...", end="\r")

    try:
        evaluations = analyser.analyse_game(game, progress_callback=progress)
    except AnalysisError as e:
        print(f"\nError during analysis: {e}")
        return False

    print("\n\n--- Move Analysis ---")
    for line in format_analysis_table(evaluations):
        print(line)
    print("---------------------")
    return True


def handle_selected_game(analyser, game, game_num, input_fn=None):
    """Sub-menu for one game: details, analyse, back."""
    input_fn = input_fn or input
    while True:
        print(f"\nSelected Game {game_num}: {game.white} vs {game.black}")
        try:
            command = input_fn("Enter command ('details', 'analyse', 'back'): ").strip().lower()
        except EOFError:
            return

        if command == "details":
            print()
            print(game.details(game_num))
        elif command == "analyse":
            analyse_game_moves(analyser, game)
        elif command == "back":
            return
        else:
            print("Invalid command.")


def interactive_loop(analyser, games, input_fn=None):
    input_fn = input_fn or input
    list_games(games)
    while True:
        try:
            choice = input_fn("\nEnter a game number to select, or 'quit' to exit: ").strip()
        except EOFError:
            choice = "quit"

        if choice.lower() == "quit":
            print("Goodbye!")
            return

        try:
            game_num = int(choice)
        except ValueError:
            game_num = 0
        if game_num < 1 or game_num > len(games):
            print("Invalid number. Please enter a number from the list.")
            continue

        handle_selected_game(analyser, games[game_num - 1], game_num, input_fn=input_fn)
        list_games(games)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Evaluate every move of your Chess.com games with a UCI engine")
    parser.add_argument("username", help="Chess.com username")
    parser.add_argument("start", help="First month to fetch (YYYY-MM)")
    parser.add_argument("end", help="Last month to fetch (YYYY-MM)")
    parser.add_argument("engine", help="Path to a UCI engine executable (e.g. Stockfish)")
    parser.add_argument("--movetime", type=int, default=DEFAULT_MOVETIME_MS,
                        help=f"Engine thinking time per move in ms (default: {DEFAULT_MOVETIME_MS})")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Kill the engine if it stays silent this many seconds (default: wait forever)")
    parser.add_argument("--verbose", action="store_true",
                        help="Log the engine protocol exchange")

    tc_group = parser.add_mutually_exclusive_group()
    tc_group.add_argument("--include", nargs="+", metavar="TYPE",
                          choices=["bullet", "blitz", "rapid", "daily"],
                          help="Only include these time controls (bullet, blitz, rapid, daily)")
    tc_group.add_argument("--exclude", nargs="+", metavar="TYPE",
                          choices=["bullet", "blitz", "rapid", "daily"],
                          help="Exclude these time controls (bullet, blitz, rapid, daily)")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.movetime <= 0:
        print("Error: --movetime must be a positive number of milliseconds")
        sys.exit(1)

    try:
        start = parse_month(args.start)
        end = parse_month(args.end)
        months = list(iter_months(start, end))
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    session = UCISession(args.engine, read_timeout=args.timeout)
    try:
        session.initialize()
    except EngineStartupError as e:
        print(f"Error starting engine: {e}")
        sys.exit(1)
    print("Engine initialized successfully.")

    try:
        include_tc = set(args.include) if args.include else None
        exclude_tc = set(args.exclude) if args.exclude else None
        games = asyncio.run(fetch_games(args.username, months, include_tc, exclude_tc))

        print("\n--- Finished Fetching ---")
        print(f"Found a total of {len(games)} games for {args.username}.\n")
        if not games:
            return

        analyser = GameAnalyser(session, think_time_ms=args.movetime)
        interactive_loop(analyser, games)
    finally:
        session.shutdown()


if __name__ == "__main__":
    main()
