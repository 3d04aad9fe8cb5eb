from fastapi import Request

from texfeedback.core.synctex.navigator import SyncNavigator


def get_navigator(request: Request) -> SyncNavigator:
    """The app-wide navigator created in the lifespan handler."""
    return request.app.state.navigator
