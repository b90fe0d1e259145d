"""Queue repository for Celery task management."""

from typing import Any, Dict


class QueueRepository:
    """Repository for queue operations using Celery."""

    @staticmethod
    def enqueue_compression(
        user_id: str,
        staging_key: str,
        filename: str,
        kind: str,
        quality: str,
    ) -> Dict[str, Any]:
        """
        Enqueue media compression task.
        Args:
            user_id: Owner of the resulting upload
            staging_key: Storage key of the staged original
            filename: Original filename
            kind: "image" or "video"
            quality: "high", "medium" or "low"
        Returns:
            Task ID and status
        """
        # Import here to avoid circular imports
        from ..tasks.compression import compress_media

        task = compress_media.delay(
            user_id=user_id,
            staging_key=staging_key,
            filename=filename,
            kind=kind,
            quality=quality,
        )
        return {
            "task_id": task.id,
            "status": "queued",
        }

    @staticmethod
    def get_task_status(task_id: str) -> Dict[str, Any]:
        """Get Celery task status."""
        # Import here to avoid circular imports
        from ..tasks.celery_app import celery_app

        task = celery_app.AsyncResult(task_id)
        return {
            "task_id": task_id,
            "status": task.status,
            "result": task.result if task.ready() else None,
        }
