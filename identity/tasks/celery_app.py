# identity/tasks/celery_app.py
from celery import Celery
from identity.core.config import settings

celery_app = Celery(
    "worker",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["identity.tasks.notifications"],
)

celery_app.conf.task_routes = {
    "identity.tasks.notifications.*": {"queue": "notifications"},
}

celery_app.conf.timezone = 'UTC'
