"""FastAPI dependency: the process-wide SessionBroadcaster from app.state."""

from typing import Annotated

from fastapi import Depends, Request

from src.fs_realtime.application.broadcaster import SessionBroadcaster


def get_broadcaster(request: Request) -> SessionBroadcaster:
    return request.app.state.broadcaster


Broadcaster = Annotated[SessionBroadcaster, Depends(get_broadcaster)]
