# CONTENTHOST BACKEND

# COMPONENT: OBJECT STORE ERROR TAXONOMY
# REQUIREMENTS SATISFIED: synchronous, non-retried failure reporting for signing and deletes
"""
contenthost/aws/errors.py

Exceptions raised by the SigV4 signer and the object store client.

    - InvalidArgument     : a required field is missing/empty or malformed
    - CryptoFailure       : the SHA-256 / HMAC-SHA256 primitive is unavailable
    - StorageUnavailable  : the network leg of delete_object failed

None of these are retried inside the aws package. Retry policy, if any,
belongs to the caller.
"""


class SigningError(Exception):
    """Base class for every error raised by contenthost.aws."""


class InvalidArgument(SigningError, ValueError):
    pass


class CryptoFailure(SigningError):
    pass


class StorageUnavailable(SigningError):
    pass
