from __future__ import annotations


class WhiskError(RuntimeError):
    pass


class CredentialError(WhiskError):
    """No usable bearer token could be obtained; ends the batch."""


class SessionWarning(WhiskError):
    """Workflow creation failed; a local workflow id is used instead."""


class UploadError(WhiskError):
    pass


class InvalidDataUriError(UploadError, ValueError):
    pass


class GenerationError(WhiskError):
    pass


class NetworkError(GenerationError):
    pass


class UpstreamStatusError(GenerationError):
    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self.preview = body[:300]
        super().__init__(f"HTTP {status}: {self.preview}")


class ParseError(GenerationError):
    def __init__(self, message: str, body: str = "") -> None:
        self.preview = body[:200]
        super().__init__(f"{message}: {self.preview}" if body else message)


class PersistError(WhiskError):
    pass
