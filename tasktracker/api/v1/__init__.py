from fastapi import APIRouter

from tasktracker.api.v1 import comments, my_tasks, projects, tasks, users

api_router = APIRouter()
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(tasks.router, prefix="/projects/{project_id}/tasks", tags=["tasks"])
api_router.include_router(
    comments.router,
    prefix="/projects/{project_id}/tasks/{task_id}/comments",
    tags=["comments"],
)
api_router.include_router(my_tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
