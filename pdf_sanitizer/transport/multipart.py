from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from pdf_sanitizer.sanitizer.models import SanitizableFile

FormValue = str | SanitizableFile

_DEFAULT_FILE_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class FormEntry:
    name: str
    value: FormValue
    filename: str | None = None

    @property
    def file(self) -> SanitizableFile | None:
        return self.value if isinstance(self.value, SanitizableFile) else None


class MultipartForm:
    """Ordered multipart/form-data payload; repeated field names are allowed."""

    def __init__(self, entries: Iterable[FormEntry] = ()) -> None:
        self._entries: list[FormEntry] = list(entries)

    def append(self, name: str, value: FormValue, filename: str | None = None) -> None:
        if isinstance(value, SanitizableFile) and filename is None:
            filename = value.name
        self._entries.append(FormEntry(name=name, value=value, filename=filename))

    def entries(self) -> list[FormEntry]:
        return list(self._entries)

    def get_all(self, name: str) -> list[FormValue]:
        return [entry.value for entry in self._entries if entry.name == name]

    def has_files(self) -> bool:
        return any(entry.file is not None for entry in self._entries)

    def __iter__(self) -> Iterator[FormEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def to_httpx_files(self) -> list[tuple[str, tuple[str | None, bytes | str, str | None]]]:
        """Render entries for ``httpx``'s ``files=`` argument.

        Text fields go in as filename-less parts so the payload is always
        multipart and keeps its original field order.
        """
        parts: list[tuple[str, tuple[str | None, bytes | str, str | None]]] = []
        for entry in self._entries:
            file = entry.file
            if file is None:
                parts.append((entry.name, (None, str(entry.value), None)))
            else:
                parts.append(
                    (
                        entry.name,
                        (
                            entry.filename or file.name,
                            file.content,
                            file.content_type or _DEFAULT_FILE_TYPE,
                        ),
                    )
                )
        return parts
