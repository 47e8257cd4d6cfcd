from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Union

BEARER_PREFIX = "ya29."


def normalize_bearer_token(token: str | None) -> str:
    value = (token or "").strip()
    if value.lower().startswith("bearer "):
        value = value[len("bearer ") :].strip()
    return value


def is_valid_bearer_token(token: str | None) -> bool:
    return bool(token) and str(token).startswith(BEARER_PREFIX)


@dataclass(frozen=True)
class Credential:
    """Cookie string plus (possibly empty) bearer token for one account."""

    cookie: str = ""
    bearer_token: str = ""

    @property
    def is_valid(self) -> bool:
        return is_valid_bearer_token(self.bearer_token)

    def token_hint(self) -> str:
        return f"ya29...{self.bearer_token[-6:]}, {len(self.bearer_token)} chars"


@dataclass(frozen=True)
class SessionContext:
    workflow_id: str
    session_id: str


@dataclass
class GenerationRequest:
    prompt: str
    aspect_ratio: str = "16:9"
    count: int = 1
    reference_images: list[str] = field(default_factory=list)
    extra_headers: dict[str, str] | None = None
    save_folder: str | None = None
    workflow_id: str | None = None


@dataclass(frozen=True)
class GenerationTask:
    index: int
    seed: int


@dataclass(frozen=True)
class GenerationSuccess:
    index: int
    payload: str


@dataclass(frozen=True)
class GenerationFailure:
    index: int
    detail: str


GenerationOutcome = Union[GenerationSuccess, GenerationFailure]


class DiagnosticTrace:
    """Append-only, ordered narrative of what each stage did."""

    def __init__(self) -> None:
        self._entries: list[str] = []

    def append(self, entry: str) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def render(self) -> str:
        return " ".join(f"[{entry}]" for entry in self._entries)


@dataclass(frozen=True)
class SavedImage:
    saved_path: str | None
    encoded_image: str

    def to_dict(self) -> dict[str, Any]:
        return {"savedPath": self.saved_path, "encodedImage": self.encoded_image}


@dataclass
class BatchResult:
    success: bool
    images: list[SavedImage] = field(default_factory=list)
    project_link: str = ""
    diagnostics: str = ""
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "images": [image.to_dict() for image in self.images],
            "projectLink": self.project_link,
            "diagnostics": self.diagnostics,
        }
        if self.error:
            data["error"] = self.error
        return data
