"""FastAPI dependencies for analytics."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import ProgressAggregator


async def get_progress_aggregator(request: Request) -> ProgressAggregator:
    """Get progress aggregator from app state."""
    app_state = request.app.state
    if not hasattr(app_state, "progress_aggregator") or not app_state.progress_aggregator:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Analytics service not available",
        )
    return app_state.progress_aggregator


# Type alias for dependency injection
ProgressAggregatorDep = Annotated[ProgressAggregator, Depends(get_progress_aggregator)]
