"""
Chat session: sequences one user turn through the transcript and the client
"""
import threading
from enum import Enum
from typing import Callable, List, Optional, Sequence
from ultrachat.ai.gemini_client import GeminiClient, TransportError
from ultrachat.models.conversation import Conversation
from ultrachat.models.message import ImageAttachment, Message
from ultrachat.models.settings import ChatSettings
from ultrachat.utils.logger import get_logger

logger = get_logger("chat_session")

APOLOGY_TEXT = "Sorry, something went wrong. Please try again. Make sure your API Key is set."


class TurnState(Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        return self in (TurnState.SENDING, TurnState.STREAMING)


class ConversationBusyError(RuntimeError):
    """A turn was started while another one is still in flight"""


# Listener signature: listener(state)
StateListener = Callable[[TurnState], None]


class ChatSession:
    """Owns the transcript, the settings and the single in-flight turn"""

    def __init__(self, client: GeminiClient, settings: Optional[ChatSettings] = None,
                 conversation: Optional[Conversation] = None):
        self.client = client
        self.conversation = conversation or Conversation()
        self._settings = settings or ChatSettings()

        self._state = TurnState.IDLE
        self._busy = False
        self._busy_lock = threading.Lock()
        self._cancel_event = threading.Event()
        self._worker: Optional[threading.Thread] = None
        self._listeners: List[StateListener] = []

    @property
    def settings(self) -> ChatSettings:
        return self._settings

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._busy

    def subscribe(self, listener: StateListener):
        """Register a callback for turn state changes"""
        self._listeners.append(listener)

    def update_settings(self, **changes) -> ChatSettings:
        """
        Replace settings for future turns

        Raises:
            ValueError: If a value is out of range (settings stay unchanged)
        """
        self._settings = self._settings.with_changes(**changes)
        logger.info(f"Settings updated: {', '.join(sorted(changes))}")
        return self._settings

    def send(self, text: str, images: Sequence[ImageAttachment] = ()) -> Optional[threading.Thread]:
        """
        Start a turn on a background thread

        Args:
            text: User text
            images: Image attachments for this turn

        Returns:
            The worker thread, or None if the input was empty

        Raises:
            ConversationBusyError: If a turn is already in flight
        """
        text = text or ""
        if not _has_content(text, images):
            logger.debug("Ignoring empty send")
            return None

        self._acquire()
        thread = threading.Thread(
            target=self._run_acquired,
            args=(text, tuple(images)),
            daemon=True
        )
        self._worker = thread
        thread.start()
        return thread

    def submit(self, text: str, images: Sequence[ImageAttachment] = ()) -> bool:
        """
        Start a background turn unless one is already running

        Returns:
            bool: True if a turn was started; the caller keeps its input otherwise
        """
        try:
            return self.send(text, images) is not None
        except ConversationBusyError:
            logger.warning("Send ignored: a response is still streaming")
            return False

    def run_turn(self, text: str, images: Sequence[ImageAttachment] = ()) -> Optional[Message]:
        """
        Run a turn on the calling thread

        Returns:
            The final model message, or None if the input was empty

        Raises:
            ConversationBusyError: If a turn is already in flight
        """
        text = text or ""
        if not _has_content(text, images):
            logger.debug("Ignoring empty send")
            return None

        self._acquire()
        return self._run_acquired(text, tuple(images))

    def cancel(self) -> bool:
        """
        Ask the in-flight turn to stop after its current fragment

        Returns:
            bool: True if a turn was in flight
        """
        if not self._busy:
            return False
        logger.info("Cancelling in-flight turn")
        self._cancel_event.set()
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the background turn to finish

        Returns:
            bool: True if no turn is running afterwards
        """
        worker = self._worker
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)
        return not self._busy

    def clear(self):
        """Cancel any in-flight turn and empty the transcript; settings are kept"""
        self.cancel()
        self.conversation.clear()

    def _acquire(self):
        with self._busy_lock:
            if self._busy:
                raise ConversationBusyError("A response is still being generated")
            self._busy = True
            self._cancel_event.clear()

    def _run_acquired(self, text: str, images: tuple) -> Message:
        # The final state is published before busy is released so that it
        # always precedes the next turn's SENDING
        final_state = TurnState.IDLE
        try:
            message, final_state = self._run(text, images)
            return message
        finally:
            self._set_state(final_state)
            with self._busy_lock:
                self._busy = False

    def _run(self, text: str, images: tuple):
        settings = self._settings
        history = self.conversation.history()

        user_message = Message.user(text, images)
        placeholder = Message.placeholder()

        self._set_state(TurnState.SENDING)
        self.conversation.append(user_message)
        self.conversation.append(placeholder)

        logger.info(f"Turn started (text: {len(text)} chars, images: {len(images)})")

        accumulated = ""
        fragments = self.client.stream_reply(text, images, history, settings)
        try:
            for fragment in fragments:
                self._set_state(TurnState.STREAMING)
                accumulated += fragment
                self.conversation.update_by_id(placeholder.id, text=accumulated)

                if self._cancel_event.is_set():
                    logger.info(f"Turn cancelled after {len(accumulated)} chars")
                    final_state = TurnState.CANCELLED
                    break
            else:
                logger.info(f"Turn completed ({len(accumulated)} chars)")
                final_state = TurnState.COMPLETED

        except TransportError as e:
            logger.error(f"Streaming error: {e}")
            final_state = self._fail(placeholder)

        except Exception as e:
            logger.exception(f"Unexpected error while streaming: {e}")
            final_state = self._fail(placeholder)

        finally:
            close = getattr(fragments, "close", None)
            if close is not None:
                close()

        return self.conversation.get(placeholder.id) or placeholder, final_state

    def _fail(self, placeholder: Message) -> TurnState:
        self.conversation.update_by_id(placeholder.id, text=APOLOGY_TEXT, is_error=True)
        return TurnState.FAILED

    def _set_state(self, state: TurnState):
        if state is self._state:
            return
        self._state = state
        logger.debug(f"Turn state: {state.value}")
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"State listener failed: {e}")


def _has_content(text: str, images: Sequence[ImageAttachment]) -> bool:
    return bool((text or "").strip()) or bool(images)
