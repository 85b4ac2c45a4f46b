import asyncio
import weakref

from pdf_sanitizer.logging.logger import Log
from pdf_sanitizer.sanitizer.models import (
    Producer,
    SanitizableFile,
    SanitizationTask,
    TaskState,
)


class SingleFlightCache:
    """Runs the producer at most once per file identity.

    Completed results are held weakly against the source file, so a cached
    entry lives exactly as long as the caller keeps the original file. Runs
    in flight are tracked in a plain dict; every waiter already holds the
    file, so the entry cannot outlive its users.
    """

    def __init__(self) -> None:
        self._results: weakref.WeakKeyDictionary[SanitizableFile, SanitizableFile] = (
            weakref.WeakKeyDictionary()
        )
        # Files whose result is themselves; a value pointing at its own key
        # would keep a WeakKeyDictionary entry alive forever.
        self._unchanged: weakref.WeakSet[SanitizableFile] = weakref.WeakSet()
        self._in_flight: dict[SanitizableFile, SanitizationTask] = {}

    def get(self, file: SanitizableFile) -> SanitizableFile | None:
        """Return the completed result for *file* without waiting."""
        if file in self._unchanged:
            return file
        return self._results.get(file)

    def is_pending(self, file: SanitizableFile) -> bool:
        return file in self._in_flight

    def __len__(self) -> int:
        return len(self._results) + len(self._unchanged)

    async def obtain(self, file: SanitizableFile, producer: Producer) -> SanitizableFile:
        """Return the result for *file*, running *producer* only if nobody has."""
        cached = self.get(file)
        if cached is not None:
            return cached

        task = self._in_flight.get(file)
        if task is not None:
            Log.debug(f"Waiting for in-flight sanitization of {file.name}")
            return await asyncio.shield(task.future)

        task = SanitizationTask(
            source=file,
            future=asyncio.get_running_loop().create_future(),
        )
        self._in_flight[file] = task
        return await self._produce(task, producer)

    async def _produce(self, task: SanitizationTask, producer: Producer) -> SanitizableFile:
        file = task.source
        task.state = TaskState.PROCESSING
        try:
            result = await producer(file)
            task.state = TaskState.DONE
        except asyncio.CancelledError:
            task.future.cancel()
            raise
        except Exception as exc:
            Log.error(f"Sanitization failed for file: {file.name}", exc)
            result = file
            task.state = TaskState.FAILED
        finally:
            del self._in_flight[file]

        if result is file:
            self._unchanged.add(file)
        else:
            self._results[file] = result
        task.future.set_result(result)
        return result
