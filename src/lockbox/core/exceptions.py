"""
Exceptions for Lockbox
Everything derives from LockboxError so callers have one general error catcher
"""


class LockboxError(Exception):
    # general container for errors
    pass


class DerivationError(LockboxError):
    # raised when the KDF rejects the salt or its parameters (contract violation)
    pass


class EncryptionError(LockboxError):
    # raised when sealing fails, e.g. a key of the wrong size
    pass


class DecryptionError(LockboxError):
    # raised when a sealed blob cannot be opened
    pass


class FormatError(DecryptionError):
    # raised on malformed input: bad base64 or shorter than a nonce
    pass


class AuthenticationError(DecryptionError):
    # raised on tag mismatch; wrong passphrase and tampering look the same
    pass


class EncodingError(LockboxError):
    # raised when decrypted bytes are not valid UTF-8 text
    pass


class VaultFormatError(LockboxError):
    # raised when a decrypted payload is not a valid list of entries
    pass


class StorageError(LockboxError):
    # raised if reading or writing the vault file fails
    pass


class VaultNotFoundError(StorageError):
    # raised when the vault file does not exist
    pass


class VaultExistsError(StorageError):
    # raised when creating a vault over an existing file
    pass
