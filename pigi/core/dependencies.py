from fastapi import Request

from pigi.core.state import AppState


def get_app_state(request: Request) -> AppState:
    return request.app.state.app_state
