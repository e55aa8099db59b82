import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from audiotag import crud
from audiotag.config import Settings, get_settings
from audiotag.database import get_db
from audiotag.models import User

logger = logging.getLogger(__name__)

DEV_OPEN_ID = "dev-user"


def get_current_user(
    x_user_id: Optional[int] = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """Resolve the identity asserted by the fronting auth layer.

    The id is trusted as-is; in development a missing header logs in as a
    local developer account instead.
    """
    if x_user_id is not None:
        user = crud.get_user(db, x_user_id)
        if user is not None:
            return user
    elif settings.is_development:
        return crud.upsert_user(
            db, DEV_OPEN_ID, name="Developer", email="dev@localhost", login_method="local"
        )
    raise HTTPException(status_code=401, detail="Not authenticated")
