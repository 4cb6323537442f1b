"""Signing in to the intranet with an autologin link.

An autologin link is a long-lived secret URL that identifies an account. It is
checked against the configured intranet's shape before any request is made,
then exchanged for the account's login.
"""

from pydantic import BaseModel, ConfigDict, Field

from epitok.config import EpitokConfig, get_config
from epitok.errors import BadCredentialFormatError, NoLoginFieldError
from epitok.intra import IntraClient
from epitok.logging import get_logger

logger = get_logger(__name__)


class Identity(BaseModel):
    """A signed-in intranet account.

    Attributes:
        credential: The autologin link, used as the prefix of every request URL.
        login: The account's school email address.
    """

    model_config = ConfigDict(frozen=True)

    credential: str = Field(repr=False)
    login: str


def check_autologin(credential: str, config: EpitokConfig | None = None) -> bool:
    """Check that a string looks like an autologin link for the configured intranet."""
    config = config or get_config()
    return config.autologin_pattern.match(credential) is not None


def resolve_identity(credential: str, client: IntraClient | None = None) -> Identity:
    """Validate an autologin link and fetch the login of its account.

    Args:
        credential: Autologin link, e.g. https://intra.epitech.eu/auth-<40 chars>.
        client: Transport to use, owned by the caller. When omitted, a client on
            the global configuration is opened and closed for this call.

    Returns:
        Identity for the account.

    Raises:
        BadCredentialFormatError: The link does not have the autologin shape.
        NoLoginFieldError: The profile has no login.
        TransportError: The profile could not be fetched.
    """
    if client is None:
        with IntraClient() as owned:
            return resolve_identity(credential, owned)

    credential = credential.strip()

    if not check_autologin(credential, client.config):
        logger.error("sign_in_failed", reason="bad_credential_format")
        raise BadCredentialFormatError()

    profile = client.fetch_json_object(f"{credential}/user?format=json")

    login = profile.get("login")
    if not isinstance(login, str) or not login:
        logger.error("sign_in_failed", reason="no_login_field")
        raise NoLoginFieldError()

    logger.info("sign_in_succeeded", login=login)
    return Identity(credential=credential, login=login)
