"""Typed exception hierarchy for the yield-farming core.

Every error carries a machine-readable ``code`` and structured fields so
callers branch on type, not on message text:

    YieldFarmError
    +-- InvalidInputError
    |   +-- ZeroBonusError
    +-- UnauthorizedError
    +-- InsufficientFundsError
    |   +-- InsufficientReservesError
    +-- InvalidStateError
    |   +-- NoPinnedBonusError
    |   +-- NoActivePositionError
    |   +-- TooSoonError
    |   +-- ReentrancyError
    +-- ExternalCallError
        +-- TransferFailedError

``recoverable`` marks errors that the bonus call sites may absorb into a
``CallResult.recoverable`` instead of aborting the enclosing operation.
"""

from typing import Optional


class YieldFarmError(Exception):
    """Base class for all core errors."""

    code: str = "YIELDFARM_ERROR"
    recoverable: bool = True

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidInputError(YieldFarmError):
    """Zero amount, empty address or malformed percentages."""

    code = "INVALID_INPUT"
    recoverable = False

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class ZeroBonusError(InvalidInputError):
    """Computed bonus rounds to zero; nothing to issue."""

    code = "ZERO_BONUS"
    recoverable = True

    def __init__(self, farm_id: str, lp: str):
        self.farm_id = farm_id
        self.lp = lp
        super().__init__(f"Computed bonus for {lp} on farm {farm_id} is zero", field="bonus")


class UnauthorizedError(YieldFarmError):
    """Caller is not the registered farm, the root farm or the owner."""

    code = "UNAUTHORIZED"
    recoverable = False

    def __init__(self, caller: str, action: str):
        self.caller = caller
        self.action = action
        super().__init__(f"{caller} is not allowed to {action}")


class InsufficientFundsError(YieldFarmError):
    """Available balance or liquidity is below the requested amount."""

    code = "INSUFFICIENT_FUNDS"

    def __init__(self, requested: int, available: int, what: str = "funds"):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient {what}: requested {requested}, available {available}"
        )


class InsufficientReservesError(InsufficientFundsError):
    """Protocol reserves cannot cover a bonus."""

    code = "INSUFFICIENT_RESERVES"

    def __init__(self, requested: int, available: int):
        super().__init__(requested, available, what="protocol reserves")


class InvalidStateError(YieldFarmError):
    """Operation is not valid in the current state."""

    code = "INVALID_STATE"


class NoPinnedBonusError(InvalidStateError):
    """Bonus record is not pinned (never issued or already resolved)."""

    code = "NO_PINNED_BONUS"

    def __init__(self, farm_id: str, lp: str):
        self.farm_id = farm_id
        self.lp = lp
        super().__init__(f"No pinned bonus for {lp} on farm {farm_id}")


class NoActivePositionError(InvalidStateError):
    """Position has zero principal."""

    code = "NO_ACTIVE_POSITION"

    def __init__(self, farm_id: str, lp: str):
        self.farm_id = farm_id
        self.lp = lp
        super().__init__(f"{lp} has no active position on farm {farm_id}")


class TooSoonError(InvalidStateError):
    """Emission throttle has not elapsed."""

    code = "TOO_SOON"

    def __init__(self, now: int, earliest: int):
        self.now = now
        self.earliest = earliest
        super().__init__(f"Emission not allowed before t={earliest} (now t={now})")


class ReentrancyError(InvalidStateError):
    """A guarded entry point was re-entered while in progress."""

    code = "REENTRANT_CALL"
    recoverable = False

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Re-entrant call into {name}")


class ExternalCallError(YieldFarmError):
    """Oracle, router, strategy or token call did not succeed."""

    code = "EXTERNAL_CALL_FAILED"

    def __init__(self, target: str, reason: str):
        self.target = target
        self.reason = reason
        super().__init__(f"{target} call failed: {reason}")


class TransferFailedError(ExternalCallError):
    """Token transfer rejected for lack of balance or allowance."""

    code = "TRANSFER_FAILED"

    def __init__(self, token: str, sender: str, amount: int, reason: str):
        self.sender = sender
        self.amount = amount
        super().__init__(token, f"transfer of {amount} from {sender}: {reason}")
