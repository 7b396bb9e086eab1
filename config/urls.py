"""
URL configuration for the task manager API.
"""
from django.urls import path
from ninja import NinjaAPI

from apps.core.responses import envelope, install_exception_handlers

API_VERSION = "1.0.0"

api = NinjaAPI(
    title="Task Manager API",
    version=API_VERSION,
    description="Authenticated task management REST API",
    docs_url="/docs",
)

install_exception_handlers(api)

from apps.identity.api import router as identity_router
from apps.tasks.api import router as tasks_router

api.add_router("/auth", identity_router)
api.add_router("/tasks", tasks_router)


@api.get("/", auth=None, tags=["Meta"])
def service_info(request):
    """Report that the API is up."""
    return envelope({"name": "Task Manager API", "version": API_VERSION}, message="Task Management REST API")


urlpatterns = [
    path('api/v1/', api.urls),
]
