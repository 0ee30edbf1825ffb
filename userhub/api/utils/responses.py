"""JSON response class serialized with orjson.

Set as the application's default response class and used directly by the
response envelope. orjson serializes datetimes natively and sorting keys
keeps the output stable across calls.
"""

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ORJSONResponse(JSONResponse):
    """FastAPI response rendered with ``orjson``.

    Attributes:
        media_type: The media type for the response.
    """

    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - any JSON-serializable content
        """Render the content as JSON using orjson.

        Args:
            content: The content to serialize. Pydantic models are dumped in
                JSON mode first.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json")

        return orjson.dumps(
            content, option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS
        )
