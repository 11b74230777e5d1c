"""
Collaborative session state.

Peers exchange the complete annotation list on every change
(`sync-annotations`); the newest list wins outright, with no merging of
concurrent edits. An auxiliary summarization job reports through
`ai-status` / `ai-result`. Only the message schema and the resulting
state live here; the transport is someone else's job.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Iterable, Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from pdfbake.engine import BakeResult, MutationEngine

AiStatus = Literal["idle", "thinking"]


class SyncAnnotationsMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["sync-annotations"] = "sync-annotations"
    annotations: list[dict[str, Any]]


class AiStatusMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["ai-status"] = "ai-status"
    status: AiStatus


class AiResultMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["ai-result"] = "ai-result"
    text: str


class AiSummarizeMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["ai-summarize"] = "ai-summarize"


SessionMessage = Annotated[
    Union[SyncAnnotationsMessage, AiStatusMessage, AiResultMessage, AiSummarizeMessage],
    Field(discriminator="type"),
]

_MESSAGE_ADAPTER: TypeAdapter = TypeAdapter(SessionMessage)
_MESSAGE_CLASSES = (SyncAnnotationsMessage, AiStatusMessage, AiResultMessage, AiSummarizeMessage)


class SessionMessageError(ValueError):
    pass


def parse_message(raw: str | bytes | Mapping[str, Any]) -> SessionMessage:
    """Decode one channel message (JSON text or an already-decoded object)."""
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SessionMessageError(f"message is not valid JSON: {e}") from e
    if not isinstance(raw, Mapping):
        raise SessionMessageError("message must be a JSON object")
    try:
        return _MESSAGE_ADAPTER.validate_python(dict(raw))
    except ValidationError as e:
        raise SessionMessageError(str(e)) from e


class AnnotationSession:
    """Last-write-wins holder of a session's authoritative annotation list."""

    def __init__(self, engine: MutationEngine | None = None):
        self.engine = engine or MutationEngine()
        self._lock = threading.Lock()
        self._annotations: tuple[dict[str, Any], ...] = ()
        self._revision = 0
        self._ai_status: AiStatus = "idle"
        self._ai_summary = ""

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def ai_status(self) -> AiStatus:
        return self._ai_status

    @property
    def ai_summary(self) -> str:
        return self._ai_summary

    def snapshot(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(a) for a in self._annotations]

    def receive(self, raw: str | bytes | Mapping[str, Any] | BaseModel) -> SessionMessage:
        """Apply one inbound message and return it decoded."""
        if isinstance(raw, _MESSAGE_CLASSES):
            msg = raw
        elif isinstance(raw, BaseModel):
            raise SessionMessageError(f"not a session message: {type(raw).__name__}")
        else:
            msg = parse_message(raw)
        with self._lock:
            if isinstance(msg, SyncAnnotationsMessage):
                self._annotations = tuple(dict(a) for a in msg.annotations)
                self._revision += 1
            elif isinstance(msg, AiStatusMessage):
                self._ai_status = msg.status
            elif isinstance(msg, AiResultMessage):
                self._ai_summary = msg.text
                self._ai_status = "idle"
        return msg

    def replace(self, annotations: Iterable[Mapping[str, Any]]) -> SyncAnnotationsMessage:
        """Replace the list locally and return the message to broadcast."""
        msg = SyncAnnotationsMessage(annotations=[dict(a) for a in annotations])
        self.receive(msg)
        return msg

    def append(self, annotation: Mapping[str, Any]) -> SyncAnnotationsMessage:
        with self._lock:
            current = [dict(a) for a in self._annotations]
        return self.replace([*current, dict(annotation)])

    def sync_message(self) -> SyncAnnotationsMessage:
        return SyncAnnotationsMessage(annotations=self.snapshot())

    def summarize_request(self) -> AiSummarizeMessage:
        with self._lock:
            self._ai_status = "thinking"
        return AiSummarizeMessage()

    def bake(self, source: bytes, deleted_page_indices: Iterable[int] = ()) -> BakeResult:
        """Run the engine on the list as it stands right now."""
        return self.engine.apply(source, self.snapshot(), deleted_page_indices)
