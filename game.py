import numpy as np

from data_structures import Move, TurnResult, is_pass
from errors import IllegalMoveError

BOARD_SIZE = 6
BLACK, WHITE, EMPTY = 1, -1, 0
CORNERS = ((0, 0), (0, BOARD_SIZE - 1), (BOARD_SIZE - 1, 0), (BOARD_SIZE - 1, BOARD_SIZE - 1))
# Eight directions, clockwise from north.
DIRECTIONS = ((-1, 0), (-1, 1), (0, 1), (1, 1), (1, 0), (1, -1), (0, -1), (-1, -1))

SYMBOLS = {BLACK: '●', WHITE: '○', EMPTY: '·'}


def initial_board():
    board = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=np.int8)
    mid = BOARD_SIZE // 2
    board[mid - 1, mid - 1] = board[mid, mid] = WHITE
    board[mid - 1, mid] = board[mid, mid - 1] = BLACK
    return board


def _in_board(r, c):
    return 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE


def _flips_in_direction(board, row, col, player, dr, dc):
    """Stones captured along one ray, or an empty list if the ray is not closed by `player`."""
    captured = []
    r, c = row + dr, col + dc
    while _in_board(r, c) and board[r, c] == -player:
        captured.append((r, c))
        r += dr; c += dc
    if captured and _in_board(r, c) and board[r, c] == player:
        return captured
    return []


def is_legal_move(board, move, player):
    row, col = move
    if not _in_board(row, col) or board[row, col] != EMPTY:
        return False
    return any(_flips_in_direction(board, row, col, player, dr, dc) for dr, dc in DIRECTIONS)


def legal_moves(board, player):
    """All legal moves for `player`, in row-major order."""
    return [Move(r, c) for r in range(BOARD_SIZE) for c in range(BOARD_SIZE)
            if is_legal_move(board, (r, c), player)]


def apply_move(board, move, player):
    """Returns a new board with `move` played. The input board is not modified."""
    row, col = move
    if not _in_board(row, col) or board[row, col] != EMPTY:
        raise IllegalMoveError("Move is off the board or on an occupied cell",
                               {"move": tuple(move), "player": player})
    captured = []
    for dr, dc in DIRECTIONS:
        captured.extend(_flips_in_direction(board, row, col, player, dr, dc))
    if not captured:
        raise IllegalMoveError("Move flips no stones", {"move": tuple(move), "player": player})

    new_board = board.copy()
    new_board[row, col] = player
    for r, c in captured:
        new_board[r, c] = player
    return new_board


def is_terminal(board):
    return not legal_moves(board, BLACK) and not legal_moves(board, WHITE)


def score(board):
    """Positive when black is ahead, negative when white is."""
    return int(board.sum())


def winner(board):
    s = score(board)
    if s > 0: return BLACK
    if s < 0: return WHITE
    return EMPTY


def cell(board, row, col):
    return int(board[row, col])


def render_board(board):
    black_count = int((board == BLACK).sum())
    white_count = int((board == WHITE).sum())
    lines = [f" Black ({SYMBOLS[BLACK]}): {black_count}  White ({SYMBOLS[WHITE]}): {white_count}", ""]
    lines.append("    " + " ".join(str(c) for c in range(BOARD_SIZE)))
    lines.append("   " + "─" * (2 * BOARD_SIZE + 1))
    for r in range(BOARD_SIZE):
        lines.append(f" {r} │" + " ".join(SYMBOLS[int(v)] for v in board[r]))
    return "\n".join(lines)


def player_name(player):
    return "Black" if player == BLACK else "White"


class OthelloGame:
    """Runs one game between two policies, one turn at a time. Black moves first."""

    def __init__(self, black, white, display=False):
        self.players = {BLACK: black, WHITE: white}
        self.display = display
        self.reset()

    def reset(self):
        self.board = initial_board()
        self.current_player = BLACK
        return self

    def is_over(self):
        return is_terminal(self.board)

    def play_turn(self):
        if self.is_over():
            raise IllegalMoveError("The game is already over")
        player = self.current_player
        policy = self.players[player]
        board_before = self.board
        if self.display:
            print("\n" + render_board(board_before))
            print(f"Current Player: {player_name(player)} ({policy.name})")

        # Policies get a copy so they cannot touch the live board.
        move = policy.decide_move(board_before.copy(), player)
        if is_pass(move):
            if legal_moves(board_before, player):
                raise IllegalMoveError(f"{policy.name} passed while holding legal moves", {"player": player})
            if self.display: print(f"{policy.name} passes.")
        else:
            move = Move(*move)
            self.board = apply_move(board_before, move, player)
            if self.display: print(f"{policy.name} places at ({move.row}, {move.col})")

        self.current_player = -player
        return TurnResult(player, move, board_before, self.board)

    def run(self):
        while not self.is_over():
            self.play_turn()
        if self.display:
            self.display_result()
        return self.winner()

    def winner(self):
        return winner(self.board)

    def display_result(self):
        print("\n" + render_board(self.board))
        w = self.winner()
        if w == EMPTY:
            print("\nGame Over! Draw!")
        else:
            print(f"\nGame Over! Winner: {player_name(w)} ({self.players[w].name}) - Score: {abs(score(self.board))}")
