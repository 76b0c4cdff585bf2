from fastapi import HTTPException, Request, status

from .services.gateway.rpc_client import Dispatcher


def get_dispatcher(request: Request) -> Dispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dispatcher not initialized",
        )
    return dispatcher
