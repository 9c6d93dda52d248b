"""Move outcome codes."""

from dataclasses import dataclass, field
from enum import Enum


class MoveOutcome(str, Enum):
    """Result of a move attempt (value is the wire name)."""

    # Success states
    SUCCESS = "Success"  # Turn ends
    SUCCESS_ROLL_AGAIN = "SuccessRollAgain"  # Token reached FINISHED
    SUCCESS_SIX = "SuccessSix"  # Rolled a 6, no capture
    SUCCESS_EVICTED_OPPONENT = "SuccessEvictedOpponent"  # Captured an opponent
    SUCCESS_THIRD_SIX_PENALTY = "SuccessThirdSixPenalty"  # Third 6, turn forfeited

    # Rule violations
    TOKEN_FINISHED = "InvalidTokenFinished"
    NEED_SIX_TO_EXIT = "InvalidNeedSixToExit"
    OVERSHOOT = "InvalidOvershoot"
    NOT_YOUR_TOKEN = "InvalidNotYourToken"
    NO_VALID_MOVES = "InvalidNoValidMoves"
    BLOCKED_BY_BLOCKADE = "InvalidBlockedByBlockade"

    @property
    def is_success(self) -> bool:
        """Check if this outcome moved a token."""
        return self in SUCCESS_OUTCOMES

    @property
    def grants_extra_roll(self) -> bool:
        """Check if the mover keeps the turn."""
        return self in ROLL_AGAIN_OUTCOMES

    @property
    def message(self) -> str:
        """Human-readable description."""
        return OUTCOME_MESSAGES[self]


SUCCESS_OUTCOMES = frozenset({
    MoveOutcome.SUCCESS,
    MoveOutcome.SUCCESS_ROLL_AGAIN,
    MoveOutcome.SUCCESS_SIX,
    MoveOutcome.SUCCESS_EVICTED_OPPONENT,
    MoveOutcome.SUCCESS_THIRD_SIX_PENALTY,
})

ROLL_AGAIN_OUTCOMES = frozenset({
    MoveOutcome.SUCCESS_ROLL_AGAIN,
    MoveOutcome.SUCCESS_SIX,
    MoveOutcome.SUCCESS_EVICTED_OPPONENT,
})

OUTCOME_MESSAGES = {
    MoveOutcome.SUCCESS: "Move successful.",
    MoveOutcome.SUCCESS_ROLL_AGAIN: "Token reached home! Roll again.",
    MoveOutcome.SUCCESS_SIX: "You rolled a 6! Roll again.",
    MoveOutcome.SUCCESS_EVICTED_OPPONENT: "You sent an opponent's token back to their base. Roll again.",
    MoveOutcome.SUCCESS_THIRD_SIX_PENALTY: "Third consecutive 6. Your turn is over.",
    MoveOutcome.TOKEN_FINISHED: "Invalid move: this token has already finished.",
    MoveOutcome.NEED_SIX_TO_EXIT: "Invalid move: you must roll a 6 to leave the base.",
    MoveOutcome.OVERSHOOT: "Invalid move: this roll would overshoot home.",
    MoveOutcome.NOT_YOUR_TOKEN: "Invalid move: this is not your token.",
    MoveOutcome.NO_VALID_MOVES: "No possible moves for this roll. Your turn is skipped.",
    MoveOutcome.BLOCKED_BY_BLOCKADE: "Invalid move: the path is blocked by a blockade.",
}


@dataclass
class MoveResult:
    """Result of processing a move."""

    success: bool
    outcome: MoveOutcome
    token_index: int = -1
    from_position: int = -1
    to_position: int = -1
    evicted: list[int] = field(default_factory=list)  # Token slots sent to BASE
