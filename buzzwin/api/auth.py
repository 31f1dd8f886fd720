"""API authentication using API keys"""
import logging
from fastapi import Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from buzzwin import config
from buzzwin.exceptions import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """
    Verify the bearer key against config.API_KEYS

    Returns:
        The verified API key

    Raises:
        ConfigurationError: No keys configured (503, every request refused)
        AuthenticationError: Key is not one of the configured keys (401)
    """
    api_key = credentials.credentials

    if not config.API_KEYS:
        raise ConfigurationError(
            "No API keys configured, rejecting all requests",
            config_key="API_KEYS",
            operation="verify_api_key"
        )

    if api_key not in config.API_KEYS:
        raise AuthenticationError(
            "Invalid API key",
            operation="verify_api_key",
            context={"key_prefix": api_key[:4]}
        )

    return api_key
