"""
Lambda handlers that need no authentication (health check, feedback form)
"""

from __future__ import annotations

import logging

import library_backend.config as config
from library_backend.models import Feedback, now_ms
from library_backend.utils import kv_store
from library_backend.utils.response import api_response, error_response
from library_backend.utils.validation import parse_json_body, validate_string_field

logger = logging.getLogger()
logger.setLevel(logging.INFO)

FEEDBACK_LIMITS = {
    "name": config.MAX_STRING_LENGTH,
    "email": config.MAX_STRING_LENGTH,
    "message": config.MAX_TEXT_LENGTH,
}


def health_handler(event, context):
    return api_response(200, {"status": "ok"})


def submit_feedback_handler(event, context):
    """
    Lambda handler for the contact form.
    Expects JSON body with name, email and message (all required).
    Stored under feedback:<timestamp>.
    """
    logger.info("submit_feedback_handler invoked")

    try:
        body, error = parse_json_body(event)
        if error:
            return error

        for field, max_length in FEEDBACK_LIMITS.items():
            error = validate_string_field(body, field, max_length=max_length, required=True)
            if error:
                return error

        created_at = now_ms()
        feedback = Feedback(
            id=Feedback.kind.key(str(created_at)),
            name=body["name"].strip(),
            email=body["email"].strip(),
            message=body["message"].strip(),
            created_at=created_at,
        )
        kv_store.save(feedback)
        logger.info(f"Stored feedback {feedback.id}")

        return api_response(200, {"success": True})

    except Exception as e:
        logger.error(f"Error submitting feedback: {str(e)}", exc_info=True)
        return error_response(500, "Internal Server Error", str(e))
