# trainer.py
# Runs a training session: one game at a time against the configured opponent
# mix, one batch update per game, periodic checkpoints, resumable after failure.

import logging
import time
import traceback
from datetime import datetime
from enum import Enum

import numpy as np
from tqdm import tqdm

from config import OPPONENT_RATIO_ORDER, DEFAULT_OPPONENT
from data_structures import Transition
from game import BLACK, WHITE, EMPTY, OthelloGame, is_terminal
from logger_config import get_game_logger
from opponents import PlayerKind, create_player
from rewards import calculate_reward
from state_encoder import encode_state
from training_session import TrainingSession

logger = logging.getLogger("Trainer")

OPPONENT_NAME = "OpponentMix"


class SessionState(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    INTERRUPTED = "interrupted"


class Trainer:
    def __init__(self, config, agent, writer=None, display=False, rng=None, progress=True):
        self.config = config
        self.agent = agent
        self.writer = writer
        self.display = display
        self.rng = rng if rng is not None else np.random.default_rng()
        self.progress = progress and not display
        self.state = SessionState.NOT_STARTED
        self.stop_requested = False
        self.game_logger = get_game_logger()

    # ================================================================
    #                      Session lifecycle
    # ================================================================
    def new_session(self):
        TrainingSession.clear(self.config.SESSION_FILE)
        return TrainingSession(total_games=self.config.NUM_GAMES, agent_name=self.agent.name,
                               opponent_name=OPPONENT_NAME)

    def load_session(self):
        return TrainingSession.load(self.config.SESSION_FILE)

    def start(self, resume=False):
        """Loads the persisted session when asked to and one exists, otherwise starts fresh."""
        session = self.load_session() if resume else None
        if session is None:
            if resume:
                logger.warning("No saved session to resume. Starting a new one.")
            session = self.new_session()
        else:
            logger.info(f"Resuming session at game {session.completed_games}/{session.total_games}.")
        return session, self.run(session)

    def request_stop(self):
        self.stop_requested = True

    # ================================================================
    #                      Per-game pieces
    # ================================================================
    def select_opponent(self, game_index):
        """Returns (PlayerKind, learning rate) for the game at `game_index`."""
        lr = self.agent.learning_rate
        if game_index < self.config.RANDOM_OPPONENT_GAMES:
            return PlayerKind.RANDOM, lr

        draw = self.rng.random()
        threshold, chosen = 0.0, DEFAULT_OPPONENT
        for name in OPPONENT_RATIO_ORDER:
            threshold += self.config.OPPONENT_RATIOS.get(name, 0.0)
            if draw < threshold:
                chosen = name
                break
        kind = PlayerKind(chosen)
        if kind is PlayerKind.HEURISTIC:
            lr *= self.config.LEARNING_RATE_MULTIPLIER_FOR_SIMPLE_AI
        return kind, lr

    def play_game(self, opponent, agent_color):
        """
        Plays one full game and returns (winner, transitions). Only the agent's own
        moves produce transitions; each links the board after its previous move to
        the board after this one.
        """
        black, white = (self.agent, opponent) if agent_color == BLACK else (opponent, self.agent)
        game = OthelloGame(black, white, display=self.display)
        transitions = []
        previous_key = None
        while not game.is_over():
            turn = game.play_turn()
            if turn.player != agent_color or turn.move is None:
                continue
            current_key = previous_key if previous_key is not None else encode_state(turn.board_before)
            next_key = encode_state(turn.board_after)
            reward = calculate_reward(turn.board_after, agent_color, self.config)
            transitions.append(Transition(current_key, next_key, reward, is_terminal(turn.board_after)))
            previous_key = next_key
        if self.display:
            game.display_result()
        return game.winner(), transitions

    def adjust_epsilon(self, agent_won, initial_epsilon):
        if agent_won:
            self.agent.update_epsilon(self.config.EPSILON_DECAY_RATE)
        else:
            self.agent.update_epsilon(1.0 / self.config.EPSILON_DECAY_RATE)
            if self.agent.epsilon > initial_epsilon:
                self.agent.set_epsilon(initial_epsilon)

    # ================================================================
    #                      Main loop
    # ================================================================
    def run(self, session):
        self.state = SessionState.RUNNING
        initial_epsilon = self.agent.epsilon
        start = session.completed_games
        run_started = time.time()
        bar = None
        if self.progress:
            bar = tqdm(total=session.total_games, initial=start, desc="Training", dynamic_ncols=True)
        logger.info(f"Training run started at game {start}/{session.total_games}, epsilon={initial_epsilon:.4f}.")

        game_index = start
        try:
            for game_index in range(start, session.total_games):
                if self.stop_requested:
                    session.save(self.config.SESSION_FILE)
                    logger.info(f"Stop requested. Session saved at {session.completed_games}/{session.total_games}.")
                    print(f"\nTraining paused at {session.completed_games}/{session.total_games} games. "
                          f"Run 'train --resume' to continue.")
                    self.state = SessionState.INTERRUPTED
                    return self.state

                if self.display:
                    print(f"\nGame {game_index + 1}/{session.total_games}")
                kind, lr = self.select_opponent(game_index)
                opponent = create_player(kind, self.config, rng=self.rng)
                agent_color = BLACK if self.rng.integers(2) == 0 else WHITE

                winner, transitions = self.play_game(opponent, agent_color)
                updated = self.agent.batch_update(transitions, lr)

                if winner == agent_color:
                    session.wins += 1
                elif winner != EMPTY:
                    session.opponent_wins += 1
                session.completed_games = game_index + 1

                self.adjust_epsilon(winner == agent_color, initial_epsilon)
                self._log_game(session, game_index, opponent, agent_color, winner, lr, updated)

                if bar is not None:
                    bar.update(1)
                    bar.set_postfix(win_rate=f"{session.wins / session.completed_games:.1%}",
                                    eps=f"{self.agent.epsilon:.4f}")
                if not self.display and session.completed_games % self.config.SAVE_INTERVAL == 0:
                    session.save(self.config.SESSION_FILE)
        except Exception as e:
            # Only the game that failed is skipped on resume; results already tallied stay tallied.
            session.completed_games = min(max(session.completed_games, game_index + 1), session.total_games)
            logger.error(f"Training interrupted at game {session.completed_games}/{session.total_games}: {e}\n"
                         f"{traceback.format_exc()}")
            print(f"\nAn error occurred: {e}")
            try:
                session.save(self.config.SESSION_FILE)
            except Exception as save_error:
                logger.error(f"Session could not be saved to {self.config.SESSION_FILE}: {save_error}")
                print(f"Session could not be saved: {save_error}")
            else:
                print(f"Session saved ({session.completed_games}/{session.total_games} games, "
                      f"{session.remaining_games} remaining). Run 'train --resume' to continue.")
            self.state = SessionState.INTERRUPTED
            return self.state
        finally:
            if bar is not None:
                bar.close()

        TrainingSession.clear(self.config.SESSION_FILE)
        self._print_summary(session, time.time() - run_started)
        self.state = SessionState.COMPLETED
        return self.state

    def _log_game(self, session, game_index, opponent, agent_color, winner, lr, updated):
        black_name = self.agent.name if agent_color == BLACK else opponent.name
        white_name = opponent.name if agent_color == BLACK else self.agent.name
        if winner == EMPTY:
            result = "Draw"
        else:
            result = f"{'Black' if winner == BLACK else 'White'}({black_name if winner == BLACK else white_name})"
        self.game_logger.info(
            f"Game {game_index + 1}/{session.total_games}: Black({black_name}) vs White({white_name}), "
            f"winner: {result}, agent wins: {session.wins}, opponent wins: {session.opponent_wins}, "
            f"epsilon: {self.agent.epsilon:.4f}, lr: {lr:.4f}, updated states: {updated}"
        )
        if self.writer is not None:
            step = session.completed_games
            self.writer.add_scalar('Training/Win_Rate', session.wins / step, step)
            self.writer.add_scalar('Training/Opponent_Win_Rate', session.opponent_wins / step, step)
            self.writer.add_scalar('Meta/Epsilon', self.agent.epsilon, step)
            self.writer.add_scalar('Meta/Learning_Rate', lr, step)
            self.writer.add_scalar('Values/Count', self.agent.value_store.count(), step)
            self.writer.add_scalar('Values/Updated_Keys', updated, step)

    def _print_summary(self, session, run_seconds):
        total_elapsed = datetime.now() - session.start_time
        win_rate = session.wins / session.total_games * 100 if session.total_games else 0.0
        header = "=" * 30
        summary = (f"\n{header} Results {header}\n"
                   f"  - Total games: {session.total_games}\n"
                   f"  - Agent wins: {session.wins}\n"
                   f"  - Opponent wins: {session.opponent_wins}\n"
                   f"  - Win rate: {win_rate:.2f}%\n"
                   f"  - Stored Q-values: {self.agent.value_store.count()}\n"
                   f"  - This run: {run_seconds:.1f}s, since session start: {str(total_elapsed).split('.')[0]}\n"
                   f"{header}========={header}")
        logger.info(summary)
        print(summary)
