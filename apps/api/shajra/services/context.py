from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional

from ..errors import Unauthorized
from ..infra.db.store import RecordStore


@dataclass(frozen=True)
class ServiceContext:
    """What every service call needs: a store and a way to ask who is acting."""
    store: RecordStore
    current_principal: Callable[[], Optional[str]]


def require_principal(ctx: ServiceContext) -> str:
    user_id = ctx.current_principal()
    if not user_id:
        raise Unauthorized()
    return user_id
