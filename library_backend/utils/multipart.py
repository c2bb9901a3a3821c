"""
multipart/form-data parsing for API Gateway events

Admin book create/update requests arrive as browser form posts carrying text
fields plus optional PDF and cover image files. API Gateway must be configured
to treat multipart/form-data as binary so the body arrives base64 encoded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from email.message import Message
from email.utils import collapse_rfc2231_value

from requests_toolbelt.multipart.decoder import (
    ImproperBodyPartContentException,
    MultipartDecoder,
    NonMultipartContentTypeException,
)

from library_backend.utils.auth import get_header
from library_backend.utils.response import error_response
from library_backend.utils.validation import get_raw_body

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class FormData:
    fields: dict[str, str] = field(default_factory=dict)
    files: dict[str, UploadedFile] = field(default_factory=dict)

    def get_text(self, name: str) -> str | None:
        """Stripped field value, or None when absent or blank."""
        value = self.fields.get(name, "").strip()
        return value or None

    def get_file(self, *names: str) -> UploadedFile | None:
        """First non-empty file under any of ``names``."""
        for name in names:
            upload = self.files.get(name)
            if upload is not None and upload.size > 0:
                return upload
        return None


def _parse_disposition(value: str) -> dict[str, str]:
    """Parameters of a Content-Disposition header (name, filename)."""
    header = Message()
    header["Content-Disposition"] = value
    params = {}
    for name in ("name", "filename"):
        param = header.get_param(name, header="content-disposition")
        if param is not None:
            params[name] = collapse_rfc2231_value(param)
    return params


def parse_form_data(event: dict) -> tuple[FormData | None, dict | None]:
    """
    Parse a multipart/form-data body from API Gateway event.

    Args:
        event: API Gateway event

    Returns:
        tuple: (form_data, error_response) - If successful, error_response is None
    """
    content_type = get_header(event, "Content-Type") or ""

    try:
        decoder = MultipartDecoder(get_raw_body(event), content_type)
    except (
        NonMultipartContentTypeException,
        ImproperBodyPartContentException,
        AttributeError,  # multipart content type without a boundary
        ValueError,
        LookupError,
    ) as e:
        logger.warning(f"Invalid multipart body: {str(e)}")
        return None, error_response(400, "Bad Request", "Expected multipart/form-data body")

    form = FormData()
    for part in decoder.parts:
        disposition = part.headers.get(b"Content-Disposition", b"").decode("utf-8")
        params = _parse_disposition(disposition)
        name = params.get("name")
        if not name:
            continue

        if "filename" in params:
            part_type = part.headers.get(b"Content-Type", b"application/octet-stream")
            form.files[name] = UploadedFile(
                filename=params["filename"],
                content_type=part_type.decode("utf-8"),
                content=part.content,
            )
        else:
            try:
                form.fields[name] = part.content.decode("utf-8")
            except UnicodeDecodeError:
                logger.warning(f"Form field {name} is not UTF-8 text")
                return None, error_response(400, "Bad Request", "Form fields must be UTF-8 text")

    return form, None
