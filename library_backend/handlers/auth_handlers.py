"""
Lambda handlers for end-user accounts (signup, signin, profile)

Credentials live in Cognito; the profile (names, favorites, recent books)
lives in the key-value table under ``user:<sub>``.
"""

from __future__ import annotations

import logging

from botocore.exceptions import ClientError

import library_backend.config as config
from library_backend.models import UserProfile, now_ms
from library_backend.utils import identity, kv_store
from library_backend.utils.auth import require_user
from library_backend.utils.response import api_response, error_response
from library_backend.utils.validation import parse_json_body, validate_string_field

logger = logging.getLogger()
logger.setLevel(logging.INFO)

PROFILE_FIELDS = ("lastName", "dateOfBirth", "country", "city", "aboutMe")

# Cognito errors caused by the request rather than the service
SIGNUP_CLIENT_ERROR_CODES = {
    "UsernameExistsException",
    "InvalidPasswordException",
    "InvalidParameterException",
}


def generate_login(first_name: str) -> str:
    """Login derived from the first name plus a millisecond timestamp."""
    return f"{first_name.strip().lower().replace(' ', '_')}_{now_ms()}"


def signup_handler(event, context):
    """
    Lambda handler to register a new user.
    Expects JSON body with firstName and password (required) plus optional
    lastName, dateOfBirth, country, city, aboutMe.

    Returns the generated login together with the submitted password so the
    user can sign in.
    """
    logger.info("signup_handler invoked")

    try:
        body, error = parse_json_body(event)
        if error:
            return error

        error = validate_string_field(body, "firstName", max_length=config.MAX_STRING_LENGTH, required=True)
        if error:
            return error
        error = validate_string_field(body, "password", max_length=config.MAX_STRING_LENGTH, required=True)
        if error:
            return error
        for field in PROFILE_FIELDS:
            max_length = config.MAX_TEXT_LENGTH if field == "aboutMe" else config.MAX_STRING_LENGTH
            error = validate_string_field(body, field, max_length=max_length)
            if error:
                return error

        first_name = body["firstName"].strip()
        password = body["password"]
        login = generate_login(first_name)

        logger.info(f"Creating user with login: {login}")

        try:
            user_id = identity.create_user(login, password)
        except ClientError as e:
            code = e.response["Error"]["Code"]  # type: ignore[typeddict-item]
            if code in SIGNUP_CLIENT_ERROR_CODES:
                logger.warning(f"Signup rejected: {code}")
                return error_response(400, "Bad Request", e.response["Error"].get("Message", code))  # type: ignore[typeddict-item]
            raise

        profile = UserProfile(
            id=user_id,
            login=login,
            first_name=first_name,
            last_name=body.get("lastName"),
            date_of_birth=body.get("dateOfBirth"),
            country=body.get("country"),
            city=body.get("city"),
            about_me=body.get("aboutMe"),
        )
        kv_store.save(profile)
        logger.info(f"User profile saved: {profile.key}")

        return api_response(
            200,
            {
                "success": True,
                "login": login,
                "password": password,
                "message": "User created successfully",
            },
        )

    except Exception as e:
        logger.error(f"Error in signup: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def signin_handler(event, context):
    """
    Lambda handler to sign in with login and password.
    Returns a Cognito access token to be sent back in X-Access-Token.
    """
    logger.info("signin_handler invoked")

    try:
        body, error = parse_json_body(event)
        if error:
            return error

        error = validate_string_field(body, "login", max_length=config.MAX_STRING_LENGTH, required=True)
        if error:
            return error
        error = validate_string_field(body, "password", max_length=config.MAX_STRING_LENGTH, required=True)
        if error:
            return error

        login = body["login"].strip()
        access_token = identity.sign_in(login, body["password"])
        if not access_token:
            return error_response(
                401,
                "Unauthorized",
                "Invalid login or password. Please check your details or sign up.",
            )

        user_id = identity.get_user_id(access_token)
        profile = kv_store.load(UserProfile, UserProfile.kind.key(user_id)) if user_id else None
        user = profile.to_dict() if profile else {"id": user_id, "login": login}

        return api_response(200, {"success": True, "accessToken": access_token, "user": user})

    except Exception as e:
        logger.error(f"Error in signin: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))


def me_handler(event, context):
    """
    Lambda handler returning the profile of the user owning X-Access-Token.
    """
    logger.info("me_handler invoked")

    try:
        user_id, error = require_user(event)
        if error:
            return error

        profile = kv_store.load(UserProfile, UserProfile.kind.key(user_id))
        if not profile:
            logger.warning(f"Profile not found for user: {user_id}")
            return error_response(404, "Not Found", "User profile not found")

        return api_response(200, {"user": profile.to_dict()})

    except Exception as e:
        logger.error(f"Error getting user profile: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))
