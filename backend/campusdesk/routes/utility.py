"""Enum option lists for client forms and system record counts."""

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user
from ..database import get_session
from ..enums import PUBLIC_ENUMS
from .common import ok

router = APIRouter(tags=["utility"])


@router.get('/enums')
def all_enums():
    return ok({name: enum.options() for name, enum in PUBLIC_ENUMS.items()})


@router.get('/enums/{name}')
def enum_options(name: str):
    enum = PUBLIC_ENUMS.get(name)
    if enum is None:
        raise HTTPException(status_code=404, detail=f'Unknown enum: {name}')
    return ok(enum.options())


@router.get('/system/stats')
def database_stats(db: Session = Depends(get_session), user: models.User = Depends(get_current_user)):
    return ok(services.UtilityService(db).database_stats())
