from fastapi import Request

from app.rfidpos.services.terminal import Terminal


def get_terminal(request: Request) -> Terminal:
    return request.app.state.terminal


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
