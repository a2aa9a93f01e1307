"""Device preference endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from binderkeep.api.deps import AppServices, get_services
from binderkeep.services.preferences import ViewMode, ViewModeContext

router = APIRouter(prefix="/preferences", tags=["preferences"])

Services = Annotated[AppServices, Depends(get_services)]


class ViewModeBody(BaseModel):
    context: ViewModeContext
    mode: ViewMode


class WelcomeResponse(BaseModel):
    show: bool


@router.get("/view-mode/{context}", response_model=ViewModeBody)
async def get_view_mode(context: ViewModeContext, services: Services) -> ViewModeBody:
    return ViewModeBody(context=context, mode=await services.preferences.get_view_mode(context))


@router.put("/view-mode/{context}", response_model=ViewModeBody)
async def set_view_mode(context: ViewModeContext, mode: ViewMode, services: Services) -> ViewModeBody:
    """Save the view mode. Binders always report grid regardless."""
    await services.preferences.set_view_mode(context, mode)
    return await get_view_mode(context, services)


@router.get("/welcome", response_model=WelcomeResponse)
async def get_welcome(services: Services) -> WelcomeResponse:
    return WelcomeResponse(show=await services.preferences.should_show_welcome())


@router.post("/welcome/dismiss", response_model=WelcomeResponse)
async def dismiss_welcome(services: Services) -> WelcomeResponse:
    await services.preferences.dismiss_welcome()
    return await get_welcome(services)
