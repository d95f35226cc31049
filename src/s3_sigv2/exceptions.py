class S3SignerError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class S3CredentialsError(S3SignerError):
    def __init__(self, message: str = "presign requires access key and secret key"):
        super().__init__(message)
