from celery import Celery

from photosweep.core.config import Settings, get_settings


def create_celery_app(settings: Settings | None = None) -> Celery:
    settings = settings or get_settings()
    app = Celery(
        "photosweep",
        broker=settings.redis_url,
        include=["photosweep_worker.tasks"],
    )
    app.conf.update(
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
    )
    return app


celery_app = create_celery_app()
