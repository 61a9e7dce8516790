"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Group / ledger
  3xxx: Expense
  4xxx: Receipt session / claims / reconciliation
  5xxx: Settlement
  9xxx: System

Claim/unclaim races are not errors; see ClaimRegistry.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired credentials", 401)


# --- 2xxx: Group / ledger ---

class NotGroupMemberError(AppError):
    def __init__(self, group_id: str) -> None:
        super().__init__(2001, f"Not a member of group {group_id}", 403)


class PlaceholderNotFoundError(AppError):
    def __init__(self, placeholder_id: str) -> None:
        super().__init__(2002, f"Placeholder not found or already claimed: {placeholder_id}", 404)


# --- 3xxx: Expense ---

class ValidationError(AppError):
    """Malformed shares, share sum != amount, empty participant set, ..."""

    def __init__(self, detail: str) -> None:
        super().__init__(3001, detail, 422)


class ExpenseNotFoundError(AppError):
    def __init__(self, expense_id: str) -> None:
        super().__init__(3002, f"Expense not found: {expense_id}", 404)


# --- 4xxx: Receipt session ---

class ReceiptSessionNotFoundError(AppError):
    def __init__(self, session_id: str) -> None:
        super().__init__(4001, f"Receipt session not found: {session_id}", 404)


class ReceiptItemNotFoundError(AppError):
    def __init__(self, item_id: str) -> None:
        super().__init__(4002, f"Receipt item not found: {item_id}", 404)


class SessionExpiredError(AppError):
    def __init__(self, session_id: str) -> None:
        super().__init__(4003, f"Receipt session has expired: {session_id}", 410)


class SessionNotClaimableError(AppError):
    def __init__(self, session_id: str, status: str) -> None:
        super().__init__(
            4004, f"Receipt session {session_id} in status {status} is not claimable", 409
        )


class NotSessionControllerError(AppError):
    def __init__(self) -> None:
        super().__init__(
            4005,
            "Only the session creator or the person who re-opened it can finalize it",
            403,
        )


class NotSessionCreatorError(AppError):
    def __init__(self) -> None:
        super().__init__(4006, "Only the person who created this session can cancel it", 403)


class SessionNotReopenableError(AppError):
    def __init__(self, session_id: str, status: str) -> None:
        super().__init__(
            4007, f"Receipt session {session_id} in status {status} cannot be re-opened", 409
        )


class SessionNotCancellableError(AppError):
    def __init__(self, session_id: str) -> None:
        super().__init__(
            4008, f"Receipt session {session_id} already produced an expense", 409
        )


class ReconciliationInputError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4009, f"Cannot reconcile receipt: {detail}", 422)


# --- 5xxx: Settlement ---

class SettlementNotFoundError(AppError):
    def __init__(self, settlement_id: str) -> None:
        super().__init__(5001, f"Settlement not found: {settlement_id}", 404)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
