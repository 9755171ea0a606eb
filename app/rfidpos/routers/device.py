from fastapi import APIRouter, Depends, Query

from app.rfidpos.core.deps import get_terminal
from app.rfidpos.domain.models import DeviceSession
from app.rfidpos.schemas.device import ActivityLogResponse, DeviceConnectRequest, DeviceSessionResponse

router = APIRouter()


def _session_response(session: DeviceSession) -> DeviceSessionResponse:
    return DeviceSessionResponse(connected=session.connected, port=session.port, opened_at=session.opened_at)


@router.get("/rfidpos/device", response_model=DeviceSessionResponse)
def get_device(terminal=Depends(get_terminal)):
    return _session_response(terminal.channel.session())


@router.post("/rfidpos/device/connect", response_model=DeviceSessionResponse)
def connect_device(payload: DeviceConnectRequest, terminal=Depends(get_terminal)):
    return _session_response(terminal.connect_device(payload.port))


@router.post("/rfidpos/device/disconnect", response_model=DeviceSessionResponse)
def disconnect_device(terminal=Depends(get_terminal)):
    return _session_response(terminal.disconnect_device())


@router.get("/rfidpos/logs", response_model=ActivityLogResponse)
def get_logs(limit: int | None = Query(None, ge=1), terminal=Depends(get_terminal)):
    lines = terminal.activity.lines(limit)
    return ActivityLogResponse(lines=lines, total=len(lines))
