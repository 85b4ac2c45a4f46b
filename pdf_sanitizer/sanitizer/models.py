import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

PDF_MEDIA_TYPE = "application/pdf"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True, eq=False)
class SanitizableFile:
    """A user-selected file.

    Equality and hashing use object identity: two files with the same bytes
    are still distinct uploads.
    """

    name: str
    content: bytes
    content_type: str = ""
    last_modified: int = field(default_factory=now_ms)

    @property
    def size(self) -> int:
        return len(self.content)

    def is_pdf(self) -> bool:
        return self.content_type == PDF_MEDIA_TYPE or self.name.lower().endswith(".pdf")


ProgressCallback = Callable[[int, int, str], None]
Producer = Callable[[SanitizableFile], Awaitable[SanitizableFile]]


@dataclass(frozen=True)
class SanitizeOptions:
    """Per-call overrides; ``None`` means "use the configured value"."""

    scale: float | None = None
    quality: float | None = None
    max_file_size_mb: int | None = None
    max_pages: int | None = None
    on_progress: ProgressCallback | None = None


class TaskState(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"


@dataclass(eq=False)
class SanitizationTask:
    """One claimed sanitization run for a single file identity."""

    source: SanitizableFile
    future: asyncio.Future[SanitizableFile]
    state: TaskState = TaskState.PENDING

    @property
    def result(self) -> SanitizableFile | None:
        if self.future.done() and not self.future.cancelled():
            return self.future.result()
        return None
