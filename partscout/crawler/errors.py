"""Exceptions raised at the fetch boundary."""


class PartScoutError(Exception):
    """Base class for PartScout errors."""


class FetchError(PartScoutError):
    """Navigation or HTTP retrieval failed."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url
        self.message = message


class FetchTimeoutError(FetchError):
    """Navigation did not settle within the configured timeout."""


class ChallengeDetectedError(FetchError):
    """The site answered with an anti-bot challenge instead of content."""

    def __init__(self, url: str, challenge_type: str):
        super().__init__(url, f"Challenge page detected ({challenge_type}) for {url}")
        self.challenge_type = challenge_type
