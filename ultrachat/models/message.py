"""
Message data model
"""
import base64
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Tuple


class InputValidationError(ValueError):
    """Raised when a message is built without the fields its role requires"""


class Role(Enum):
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class ImageAttachment:
    """In-memory image payload with its declared MIME type"""

    data: bytes
    mime_type: str = "image/jpeg"

    def to_data_url(self) -> str:
        """Encode as a self-describing data URL"""
        payload = base64.b64encode(self.data).decode('ascii')
        return f"data:{self.mime_type};base64,{payload}"

    def __repr__(self):
        return f"ImageAttachment(mime_type={self.mime_type!r}, size={len(self.data)})"


@dataclass(frozen=True)
class Message:
    """Represents a single message in the conversation"""

    role: Role
    text: str = ""
    images: Tuple[ImageAttachment, ...] = ()
    is_error: bool = False
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        # Absent text is stored as "", lists as tuples
        object.__setattr__(self, "text", self.text or "")
        object.__setattr__(self, "images", tuple(self.images))

        if self.role is Role.USER:
            if not self.text.strip() and not self.images:
                raise InputValidationError("User message needs text or at least one image")
            if self.is_error:
                raise InputValidationError("User messages cannot be flagged as errors")
        elif self.role is Role.MODEL:
            if self.images:
                raise InputValidationError("Model messages do not carry images")
        else:
            raise InputValidationError(f"Unknown role: {self.role!r}")

    @classmethod
    def user(cls, text: str, images=()) -> 'Message':
        """Build a user message"""
        return cls(role=Role.USER, text=text, images=tuple(images))

    @classmethod
    def placeholder(cls) -> 'Message':
        """Build the empty model message a streamed reply is written into"""
        return cls(role=Role.MODEL, text="")

    @property
    def is_user(self) -> bool:
        return self.role is Role.USER

    def with_changes(self, **changes) -> 'Message':
        """Return a copy with the given fields replaced (id is preserved)"""
        if "id" in changes and changes["id"] != self.id:
            raise ValueError("Message id cannot be changed")
        return replace(self, **changes)

    def to_history(self) -> dict:
        """Role/text pair used as prior context; images are stripped"""
        return {"role": self.role.value, "text": self.text}
