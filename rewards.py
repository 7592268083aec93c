# rewards.py
# Reward signal handed to the learning agent after each of its moves.

from game import CORNERS, legal_moves, is_terminal, winner

WIN_REWARD = 100.0
LOSS_REWARD = -100.0
DRAW_REWARD = 0.0


def evaluate_board(board, player, corner_weight, legal_move_weight):
    """Corner ownership plus mobility, both measured as `player` minus opponent."""
    score = 0.0
    for r, c in CORNERS:
        if board[r, c] == player:
            score += corner_weight
        elif board[r, c] == -player:
            score -= corner_weight
    score += (len(legal_moves(board, player)) - len(legal_moves(board, -player))) * legal_move_weight
    return score


def terminal_reward(board, player):
    w = winner(board)
    if w == player: return WIN_REWARD
    if w == -player: return LOSS_REWARD
    return DRAW_REWARD


def calculate_reward(board, player, config):
    """
    Reward for `player` on the board right after its move. Terminal boards pay
    +/-100 or 0; anything else pays the scaled heuristic difference.
    """
    if is_terminal(board):
        return terminal_reward(board, player)
    mine = evaluate_board(board, player, config.CORNER_WEIGHT, config.LEGAL_MOVE_WEIGHT)
    theirs = evaluate_board(board, -player, config.CORNER_WEIGHT, config.LEGAL_MOVE_WEIGHT)
    return (mine - theirs) * config.INTERMEDIATE_REWARD_SCALE
