"""Authentication module for Confluence credentials.

Credentials come from the loaded publisher settings (which in turn may read a
.env file, environment variables, a config file or CLI options). This module
validates that all required values are present before a client is built.
"""

from typing import NamedTuple, Optional

from .errors import InvalidCredentialsError


class Credentials(NamedTuple):
    """Confluence API credentials."""
    url: str
    user: str
    api_token: str


class Authenticator:
    """Holds and validates Confluence credentials.

    Credentials are never logged. Validation is deferred to get_credentials()
    so an Authenticator can be built before every value is known.

    Raises:
        InvalidCredentialsError: If any required credential is missing

    Example:
        >>> auth = Authenticator(
        ...     url="https://example.atlassian.net",
        ...     user="me@example.com",
        ...     api_token="secret",
        ... )
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.url}")
    """

    def __init__(
        self,
        url: Optional[str] = None,
        user: Optional[str] = None,
        api_token: Optional[str] = None,
    ):
        """Initialize the authenticator.

        Args:
            url: Confluence base URL (e.g., https://yourinstance.atlassian.net)
            user: Atlassian user name (email address)
            api_token: Atlassian API token
        """
        self._url = url
        self._user = user
        self._api_token = api_token

    @classmethod
    def from_settings(cls, settings) -> "Authenticator":
        """Build an Authenticator from a ConfluenceSettings object."""
        return cls(
            url=settings.confluence_base_url,
            user=settings.atlassian_user_name,
            api_token=settings.atlassian_api_token,
        )

    def get_credentials(self) -> Credentials:
        """Get the validated Confluence credentials.

        Returns:
            Credentials: A named tuple containing url, user, and api_token

        Raises:
            InvalidCredentialsError: If any required credential is missing
        """
        if not self._url or not self._user or not self._api_token:
            raise InvalidCredentialsError(
                user=self._user if self._user else "unknown",
                endpoint=self._url if self._url else "unknown",
            )

        return Credentials(url=self._url, user=self._user, api_token=self._api_token)
