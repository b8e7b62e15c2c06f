import base64
import binascii
import re
from typing import NamedTuple

from utils.errors import ValidationError

DATA_URL_PATTERN = re.compile(r"^data:(image/([\w.+-]+));base64,")

DEFAULT_MIME_TYPE = "image/jpeg"
DEFAULT_EXTENSION = "jpeg"


class DecodedImage(NamedTuple):
    data: bytes
    mime_type: str
    extension: str


def decode_data_url(data_url: str) -> DecodedImage:
    """
    Decode a base64 image, optionally wrapped in a `data:image/...;base64,`
    prefix. MIME type and extension come from the prefix, falling back to
    jpeg when there is none.
    """
    match = DATA_URL_PATTERN.match(data_url)
    if match:
        mime_type, extension = match.group(1), match.group(2)
        payload = data_url[match.end():]
    else:
        mime_type, extension = DEFAULT_MIME_TYPE, DEFAULT_EXTENSION
        payload = data_url

    try:
        data = base64.b64decode(payload)
    except (binascii.Error, ValueError):
        raise ValidationError("Image must be base64 encoded.")

    if not data:
        raise ValidationError("Image payload is empty.")

    return DecodedImage(data, mime_type, extension)
