"""FastAPI dependencies for progress tracking.

Provides dependency injection for:
- Completion gate
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CompletionGate


async def get_completion_gate(request: Request) -> CompletionGate:
    """Get completion gate from app state.

    Args:
        request: FastAPI request

    Returns:
        CompletionGate instance
    """
    app_state = request.app.state
    if not hasattr(app_state, "completion_gate") or not app_state.completion_gate:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Progress service not available",
        )
    return app_state.completion_gate


# Type alias for dependency injection
CompletionGateDep = Annotated[CompletionGate, Depends(get_completion_gate)]
