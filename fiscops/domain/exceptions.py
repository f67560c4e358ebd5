"""Domain-specific exceptions"""


class FiscOpsError(Exception):
    """Base exception for the dashboard"""

    pass


class StorageError(FiscOpsError):
    """Persisted state could not be read or written"""

    pass


class RemoteStoreError(StorageError):
    """Remote data service returned an error or is unavailable"""

    pass


class AuthError(FiscOpsError):
    """Identity provider rejected the request"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnknownTaxpayerError(FiscOpsError):
    """No taxpayer with the requested identifier"""

    pass


class InvalidEditError(FiscOpsError):
    """Edit refers to a segment or status that does not exist"""

    pass
