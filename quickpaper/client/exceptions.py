class ClientError(Exception):
    """Handled exceptions from the provider clients"""


class AuthError(ClientError):
    """Missing or invalid session"""


class UploadError(ClientError):
    """Object storage rejected the write"""


class ProviderError(ClientError):
    """Email or messaging provider rejected the request"""

    def __init__(self, message, status=None, code=None, body=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.body = body
