"""
Garage core error schemas
"""

import pydantic


__all__ = ["APIError"]


class APIError(pydantic.BaseModel):
    """
    APIError: shared model for all types of API failures

    Whenever some kind of problem occurs during request handling and some
    exception handler took over, the answer will be this model. The single
    field `Error` contains a short human-readable message about the problem.
    It never contains internal details, not even for `500` responses.
    """

    Error: str
