"""
End-user identity, delegated to a Cognito user pool

Users sign in with a generated login; Cognito requires an e-mail attribute, so
each account gets a synthetic ``<login>@USER_EMAIL_DOMAIN`` address that is
marked verified and never mailed.
"""

from __future__ import annotations

import logging

from botocore.exceptions import ClientError

import library_backend.config as config

logger = logging.getLogger(__name__)

# Cognito error codes meaning "these credentials / this token are no good"
INVALID_CREDENTIAL_CODES = {
    "NotAuthorizedException",
    "UserNotFoundException",
    "UserNotConfirmedException",
    "PasswordResetRequiredException",
}


def login_email(login: str) -> str:
    return f"{login}@{config.USER_EMAIL_DOMAIN}"


def _attributes(attribute_list: list[dict]) -> dict[str, str]:
    return {attr["Name"]: attr["Value"] for attr in attribute_list}


def create_user(login: str, password: str) -> str:
    """
    Create a confirmed user with a permanent password.

    Args:
        login: Username
        password: Initial (permanent) password

    Returns:
        str: The user's Cognito sub

    Raises:
        ClientError: If Cognito rejects the user or the password. A user whose
            password was rejected is deleted again before re-raising.
    """
    response = config.cognito_client.admin_create_user(
        UserPoolId=config.USER_POOL_ID,
        Username=login,
        UserAttributes=[
            {"Name": "email", "Value": login_email(login)},
            {"Name": "email_verified", "Value": "true"},
        ],
        MessageAction="SUPPRESS",
    )
    user_id = _attributes(response["User"].get("Attributes", []))["sub"]

    try:
        config.cognito_client.admin_set_user_password(
            UserPoolId=config.USER_POOL_ID,
            Username=login,
            Password=password,
            Permanent=True,
        )
    except ClientError:
        logger.warning(f"Password rejected for new user {login}, rolling back")
        config.cognito_client.admin_delete_user(UserPoolId=config.USER_POOL_ID, Username=login)
        raise

    logger.info(f"Created Cognito user {login} ({user_id})")
    return user_id


def sign_in(login: str, password: str) -> str | None:
    """
    Authenticate with login and password.

    Returns:
        str: Access token, or None if the credentials were rejected
    """
    try:
        response = config.cognito_client.admin_initiate_auth(
            UserPoolId=config.USER_POOL_ID,
            ClientId=config.USER_POOL_CLIENT_ID,
            AuthFlow="ADMIN_USER_PASSWORD_AUTH",
            AuthParameters={"USERNAME": login, "PASSWORD": password},
        )
    except ClientError as e:
        if e.response["Error"]["Code"] in INVALID_CREDENTIAL_CODES:  # type: ignore[typeddict-item]
            logger.warning(f"Sign in rejected for {login}: {e.response['Error']['Code']}")  # type: ignore[typeddict-item]
            return None
        raise

    result = response.get("AuthenticationResult")
    if not result:
        # A pending challenge (e.g. NEW_PASSWORD_REQUIRED) means no session
        logger.warning(f"Sign in for {login} returned challenge {response.get('ChallengeName')}")
        return None
    return result["AccessToken"]


def get_user_id(access_token: str | None) -> str | None:
    """
    Resolve an access token to the user's Cognito sub.

    Returns:
        str: User id, or None if the token is missing, invalid or expired
    """
    if not access_token:
        return None

    try:
        response = config.cognito_client.get_user(AccessToken=access_token)
    except ClientError as e:
        code = e.response["Error"]["Code"]  # type: ignore[typeddict-item]
        if code in INVALID_CREDENTIAL_CODES or code == "InvalidParameterException":
            return None
        raise

    return _attributes(response.get("UserAttributes", [])).get("sub")
