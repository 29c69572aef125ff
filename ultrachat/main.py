"""
Ultra Chat - Main Application
"""
from ultrachat.utils.logger import get_logger
from ultrachat.config import Config
from ultrachat.gui.main_window import MainWindow
from ultrachat.ai.chat_session import ChatSession
from ultrachat.ai.gemini_client import GeminiClient
from ultrachat.ai.vision_handler import encode_image_file

logger = get_logger("main")


class UltraChatApp:
    """Main application class"""

    def __init__(self):
        logger.info("Initializing Ultra Chat")

        self.client = GeminiClient()
        self.session = ChatSession(self.client, settings=Config.default_settings())

        # Create GUI
        self.window = MainWindow(self)

        # Route model changes to the GUI thread
        self.session.conversation.subscribe(self._on_transcript_changed)
        self.session.subscribe(self._on_turn_state_changed)

        logger.info("Ultra Chat initialized")

    def handle_gui_event(self, event_type, data):
        """
        Handle events from GUI

        Args:
            event_type: Type of event
            data: Event data

        Returns:
            For "user_message", whether a turn was started
        """
        logger.debug(f"GUI event: {event_type}")

        if event_type == "user_message":
            return self._handle_user_message(data)

        elif event_type == "attach_images":
            self._handle_attach_images(data)

        elif event_type == "settings_changed":
            self._handle_settings_changed(data)

        elif event_type == "clear_conversation":
            self._handle_clear_conversation()

        elif event_type == "shutdown":
            self._handle_shutdown()

        return None

    def _handle_user_message(self, data) -> bool:
        """Start a turn for the composed text and images"""
        text = data.get("text", "")
        images = data.get("images", [])

        logger.info(f"User message: {len(text)} chars, {len(images)} images")

        return self.session.submit(text, images)

    def _handle_attach_images(self, data):
        """Encode selected files into attachments"""
        attachments = []
        failed = []
        for path in data.get("paths", []):
            try:
                attachments.append(encode_image_file(path))
            except Exception as e:
                logger.warning(f"Skipping image {path}: {e}")
                failed.append(path)

        if attachments:
            self.window.add_event("images_attached", {"images": attachments})
        if failed:
            self.window.add_event("error", {"message": f"Could not read {len(failed)} image(s)"})

    def _handle_settings_changed(self, changes):
        try:
            self.session.update_settings(**changes)
        except ValueError as e:
            logger.error(f"Rejected settings change: {e}")
            self.window.add_event("error", {"message": str(e)})

    def _handle_clear_conversation(self):
        """Clear conversation history"""
        self.session.clear()

    def _handle_shutdown(self):
        """Stop any in-flight turn before exit"""
        logger.info("Shutting down Ultra Chat...")
        self.session.cancel()

    def _on_transcript_changed(self, event, message):
        self.window.add_event("transcript", {"event": event, "message": message})

    def _on_turn_state_changed(self, state):
        self.window.add_event("turn_state", {"state": state})

    def run(self):
        """Run the application"""
        self.window.run()
