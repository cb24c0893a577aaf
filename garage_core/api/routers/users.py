"""
Garage core router module for /users requests
"""

import logging

from fastapi import Depends

from ._router import router
from ..dependency import MinimalRequestData, require_json_accept
from ...persistence import models
from ...persistence.store import EntityStore
from ... import schemas


logger = logging.getLogger(__name__)


@router.get(
    "/users",
    tags=["Users"],
    response_model=schemas.UserList,
    dependencies=[Depends(require_json_accept)]
)
async def get_all_users(local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Return the IDs of all users that ever logged in via the `/oauth` flow
    """

    users = EntityStore(models.User, local.session).all()
    return schemas.UserList(users=[user.to_schema() for user in users])
