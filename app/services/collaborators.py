"""Interfaces of the collaborators that turn a certificate record into a
delivered document.

Implementations are provided by the deployment (PDF service, email API) and
attached to ``app.state`` at startup.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class RenderedDocument:
    content: bytes
    url: str


@dataclass(frozen=True)
class DispatchResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class DocumentRenderer(ABC):
    """Renders certificate field data into a stored document."""

    @abstractmethod
    def render(self, fields: Dict[str, Any]) -> RenderedDocument:
        """Return the rendered bytes and the URL they were stored at."""
        ...


class NotificationDispatcher(ABC):
    """Sends a templated notification to one recipient."""

    @abstractmethod
    def send(self, recipient: str, template_data: Dict[str, Any]) -> DispatchResult:
        ...
