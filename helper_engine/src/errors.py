"""Error types raised by the Tekmetric clients."""


class HelperError(Exception):
    pass


class NotConfigured(HelperError):
    """Tekmetric API key or shop id missing from the environment."""


class TekmetricError(HelperError):
    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(f"Tekmetric API error ({status_code}): {detail}" if status_code else detail)
        self.detail = detail
        self.status_code = status_code


class FetchFailed(TekmetricError):
    """Reading a repair order failed."""


class WriteFailed(TekmetricError):
    """Writing a repair order summary failed."""
