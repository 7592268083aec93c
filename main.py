# main.py
# Command-line entry point: train the Q-learning agent, play against it, or watch two players.

import argparse
import logging
import signal
import sys

import numpy as np
from torch.utils.tensorboard import SummaryWriter

from agent import QLearningAgent
from config import Config
from errors import ConfigError, SessionError
from game import OthelloGame
from logger_config import setup_logging
from opponents import PlayerKind, create_player
from trainer import SessionState, Trainer
from training_session import TrainingSession

EXIT_OK, EXIT_INTERRUPTED, EXIT_CONFIG_ERROR = 0, 1, 2


def log_and_display_config(config, logger):
    """Logs the key configuration parameters at startup."""
    header = "="*30
    config_details = f"\n{header} Key Configuration {header}\n"
    config_details += f"[Storage]\n  - Q-value DB: {config.DB_PATH}\n  - Session file: {config.SESSION_FILE}\n\n"
    config_details += (f"[Q-learning]\n  - Learning Rate: {config.LEARNING_RATE}\n  - Discount: {config.DISCOUNT_FACTOR}\n"
                       f"  - Epsilon: {config.EPSILON} (decay {config.EPSILON_DECAY_RATE})\n"
                       f"  - Replay Buffer: {config.REPLAY_BUFFER_SIZE}\n  - Batch Size: {config.BATCH_SIZE}\n\n")
    config_details += (f"[Training]\n  - Games: {config.NUM_GAMES}\n  - Save Interval: {config.SAVE_INTERVAL}\n"
                       f"  - Random-opponent warm-up: {config.RANDOM_OPPONENT_GAMES}\n"
                       f"  - Opponent Ratios: {config.OPPONENT_RATIOS}\n")
    config_details += header + "===================" + header
    logger.info(config_details)
    print(config_details)


def ask_yes_no(prompt, default=False):
    answer = input(prompt).strip().upper()
    if not answer:
        return default
    return answer == "Y"


def cmd_train(args, config, logger):
    rng = np.random.default_rng(args.seed)
    agent = QLearningAgent(config, rng=rng)

    resume = args.resume
    if not args.resume and not args.fresh and TrainingSession.exists(config.SESSION_FILE):
        resume = ask_yes_no("A saved training session was found. Resume it? (Y/N): ")

    if args.reset_db:
        if resume:
            logger.warning("Ignoring --reset-db while resuming a session.")
        else:
            agent.clear_values()

    writer = SummaryWriter(config.TENSORBOARD_DIR)
    trainer = Trainer(config, agent, writer=writer, display=args.display, rng=rng)

    def stop_handler(signum, frame):
        if not trainer.stop_requested:
            logger.info("Stop signal received. Finishing the current game before saving...")
            trainer.request_stop()

    signal.signal(signal.SIGINT, stop_handler)
    signal.signal(signal.SIGTERM, stop_handler)

    try:
        _, state = trainer.start(resume=resume)
    finally:
        writer.close()
        agent.value_store.close()
    return EXIT_OK if state is SessionState.COMPLETED else EXIT_INTERRUPTED


def cmd_play(args, config, logger):
    rng = np.random.default_rng(args.seed)
    opponent = create_player(args.opponent, config, rng=rng)
    if isinstance(opponent, QLearningAgent):
        opponent.set_epsilon(0.0)
    human = create_player(PlayerKind.HUMAN)
    black, white = (human, opponent) if args.color == "black" else (opponent, human)
    logger.info(f"Human vs {opponent.name}, human plays {args.color}.")
    try:
        OthelloGame(black, white, display=True).run()
    except EOFError:
        logger.info("Input closed during play. Game abandoned.")
        print("\nInput closed. Game abandoned.")
        return EXIT_INTERRUPTED
    return EXIT_OK


def cmd_battle(args, config, logger):
    rng = np.random.default_rng(args.seed)
    black = create_player(args.black, config, rng=rng)
    white = create_player(args.white, config, rng=rng)
    for player in (black, white):
        if isinstance(player, QLearningAgent):
            player.set_epsilon(0.0)
    logger.info(f"Battle: {black.name} (black) vs {white.name} (white).")
    winner = OthelloGame(black, white, display=True).run()
    logger.info(f"Battle finished, winner: {winner}.")
    return EXIT_OK


def build_parser():
    kinds = [k.value for k in PlayerKind if k is not PlayerKind.HUMAN]
    parser = argparse.ArgumentParser(description="Tabular Q-learning for 6x6 Othello")
    parser.add_argument("--config", default="settings.json", help="Path to the JSON settings file")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--verbose", action="store_true", help="Also log to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    train = sub.add_parser("train", help="Run (or resume) a training session")
    group = train.add_mutually_exclusive_group()
    group.add_argument("--resume", action="store_true", help="Resume the saved session without asking")
    group.add_argument("--fresh", action="store_true", help="Discard any saved session and start over")
    train.add_argument("--display", action="store_true", help="Render every board (disables checkpoints)")
    train.add_argument("--reset-db", action="store_true", help="Drop all learned Q-values first")
    train.set_defaults(func=cmd_train)

    play = sub.add_parser("play", help="Play against a computer player")
    play.add_argument("--color", choices=["black", "white"], default="black")
    play.add_argument("--opponent", choices=kinds, default=PlayerKind.Q_LEARNING.value)
    play.set_defaults(func=cmd_play)

    battle = sub.add_parser("battle", help="Watch one game between two computer players")
    battle.add_argument("black", choices=kinds)
    battle.add_argument("white", choices=kinds)
    battle.set_defaults(func=cmd_battle)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        config = Config.from_file(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(config.LOG_FILE, config.GAME_LOG_FILE, console=args.verbose)
    logger = logging.getLogger("Main")
    if args.command == "train":
        log_and_display_config(config, logger)
    try:
        return args.func(args, config, logger)
    except SessionError as e:
        logger.error(f"Saved session could not be used: {e}")
        print(f"Saved session could not be used: {e}", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
