from servicekit.config import Settings


class ChallengeSettings(Settings):
    SERVICE_NAME: str = "challenge-api"
    APPLICATION_NAME: str = "challenge-api"

    # Upstream challenge API
    CHALLENGE_API_URL: str = "http://api.topcoder-dev.com/v5/challenges"
    UPSTREAM_TIMEOUT: float = 10.0

    # Machine-to-machine auth (mocked)
    M2M_TOKEN: str = ""
    M2M_DELAY_MS: int = 100

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100


settings = ChallengeSettings()
