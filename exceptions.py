"""Custom exception classes for Nova Finance."""


class NovaFinanceError(Exception):
    """Base exception for Nova Finance."""
    pass


class ProfileNotFoundError(NovaFinanceError):
    """No profile exists with the requested uid."""

    def __init__(self, uid: str):
        super().__init__(f"Profile not found: {uid}")
        self.uid = uid


class TransactionNotFoundError(NovaFinanceError):
    """No transaction with the requested id belongs to the profile."""

    def __init__(self, tx_id: str):
        super().__init__(f"Transaction not found: {tx_id}")
        self.tx_id = tx_id


class StorageError(NovaFinanceError):
    """Report files could not be written to or read from the file store."""
    pass
