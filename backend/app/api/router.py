from fastapi import APIRouter

from app.api.routes import auth, board, comments, issues, projects, users


api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(projects.router)
api_router.include_router(board.router)
api_router.include_router(issues.router)
api_router.include_router(comments.router)
