"""
Conversation transcript model
"""
from threading import Lock
from typing import Callable, Dict, List, Optional
from ultrachat.models.message import Message
from ultrachat.utils.logger import get_logger

logger = get_logger("conversation")

# Listener signature: listener(event, message); message is None for "cleared"
TranscriptListener = Callable[[str, Optional[Message]], None]


class Conversation:
    """Ordered in-memory transcript with change notification"""

    def __init__(self):
        self._messages: List[Message] = []
        self._index: Dict[str, int] = {}
        self._listeners: List[TranscriptListener] = []
        self._lock = Lock()

    @property
    def messages(self) -> List[Message]:
        """Snapshot of the transcript in order"""
        with self._lock:
            return list(self._messages)

    def subscribe(self, listener: TranscriptListener):
        """Register a callback invoked after every mutation"""
        self._listeners.append(listener)

    def unsubscribe(self, listener: TranscriptListener):
        """Remove a previously registered callback"""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def append(self, message: Message):
        """
        Append a message to the end of the transcript

        Args:
            message: Message to append; its id must not already be present
        """
        with self._lock:
            if message.id in self._index:
                raise ValueError(f"Duplicate message id: {message.id}")
            self._index[message.id] = len(self._messages)
            self._messages.append(message)

        logger.debug(f"Appended {message.role.value} message {message.id} (images: {len(message.images)})")
        self._notify("appended", message)

    def update_by_id(self, message_id: str, **changes) -> bool:
        """
        Replace fields of the message with the given id, in place

        Args:
            message_id: Id of the message to update
            **changes: Field values to set (e.g. text, is_error)

        Returns:
            bool: False if no message has that id
        """
        with self._lock:
            position = self._index.get(message_id)
            if position is None:
                updated = None
            else:
                updated = self._messages[position].with_changes(**changes)
                self._messages[position] = updated

        if updated is None:
            logger.debug(f"Ignoring update for unknown message {message_id}")
            return False

        self._notify("updated", updated)
        return True

    def clear(self):
        """Clear all messages"""
        with self._lock:
            removed = len(self._messages)
            self._messages = []
            self._index = {}

        logger.info(f"Conversation cleared ({removed} messages)")
        self._notify("cleared", None)

    def get(self, message_id: str) -> Optional[Message]:
        """Get a message by id"""
        with self._lock:
            position = self._index.get(message_id)
            return self._messages[position] if position is not None else None

    def history(self) -> List[dict]:
        """
        Get prior context for a text-only request

        Returns:
            List of role/text dicts in transcript order
        """
        with self._lock:
            return [msg.to_history() for msg in self._messages]

    def get_message_count(self) -> int:
        """Get total number of messages"""
        with self._lock:
            return len(self._messages)

    def get_last_message(self) -> Optional[Message]:
        """Get the last message in conversation"""
        with self._lock:
            return self._messages[-1] if self._messages else None

    def _notify(self, event: str, message: Optional[Message]):
        for listener in list(self._listeners):
            try:
                listener(event, message)
            except Exception as e:
                logger.error(f"Transcript listener failed on '{event}': {e}")
