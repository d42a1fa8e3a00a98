class PackagingError(Exception):
    pass


class ValidationError(PackagingError):
    pass


class ConfigurationError(PackagingError):
    pass


class DerivationFailure(PackagingError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to derive companion for '{path}': {reason}")
        self.path = path
        self.reason = reason


class SigningError(PackagingError):
    pass


class VerificationError(Exception):
    pass


class SignatureVerificationError(VerificationError):
    pass
