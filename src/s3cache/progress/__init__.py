"""Progress display adapters."""

from s3cache.progress.rich_progress import RichProgressReporter


__all__ = ["RichProgressReporter"]
