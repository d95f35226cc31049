"""AWS Signature Version 2 request signing for S3-compatible storage."""

__version__ = "0.1.0"

from .auth import AWSSignatureV2
from .config import Config
from .exceptions import S3CredentialsError, S3SignerError
from .request import (
    Operation,
    SigningRequest,
    new_presigned_request,
    new_request,
    new_unauthenticated_request,
)
from .urlparsing import encode_path, get_request_url, split_path

__all__ = [
    "AWSSignatureV2",
    "Config",
    "Operation",
    "SigningRequest",
    "new_presigned_request",
    "new_request",
    "new_unauthenticated_request",
    "encode_path",
    "get_request_url",
    "split_path",
    "S3SignerError",
    "S3CredentialsError",
]
