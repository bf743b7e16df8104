"""FastAPI dependencies for the comment system.

Provides dependency injection for:
- Comment service
- Error mapping from service errors to HTTP responses
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CommentError, CommentService


async def get_comment_service(request: Request) -> CommentService:
    """Get comment service from app state.

    Args:
        request: FastAPI request

    Returns:
        CommentService instance
    """
    service = getattr(request.app.state, "comment_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment service unavailable",
        )
    return service


CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]


def handle_comment_error(error: CommentError) -> HTTPException:
    """Convert comment errors to HTTP exceptions.

    Args:
        error: Comment error

    Returns:
        HTTPException with appropriate status code
    """
    status_map = {
        "invalid_argument": status.HTTP_400_BAD_REQUEST,
        "comment_not_found": status.HTTP_404_NOT_FOUND,
        "permission_denied": status.HTTP_403_FORBIDDEN,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTTPException(
        status_code=status_code,
        detail=error.message,
    )
