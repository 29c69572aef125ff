"""
Main application window for Ultra Chat
"""
import customtkinter as ctk
import queue
from tkinter import filedialog, messagebox
from ultrachat.ai.chat_session import TurnState
from ultrachat.ai.vision_handler import decode_attachment
from ultrachat.config import Config
from ultrachat.utils.logger import get_logger
from ultrachat.gui.conversation_view import ConversationView
from ultrachat.gui.settings_panel import SettingsPanel

logger = get_logger("gui")

PREVIEW_SIZE = (64, 64)


class MainWindow:
    """Main application window"""

    def __init__(self, app):
        self.app = app
        self.event_queue = queue.Queue()
        self.pending_images = []  # attachments for the next message
        self._preview_refs = []
        self.settings_panel = None
        self.is_busy = False

        ctk.set_appearance_mode(Config.get("gui", "appearance", default="system"))
        ctk.set_default_color_theme("blue")

        self.root = ctk.CTk()
        self.root.title("Gemini Ultra")

        width = Config.get("gui", "window_width", default=900)
        height = Config.get("gui", "window_height", default=700)

        # Center window on screen
        screen_width = self.root.winfo_screenwidth()
        screen_height = self.root.winfo_screenheight()
        x = (screen_width - width) // 2
        y = (screen_height - height) // 2

        self.root.geometry(f"{width}x{height}+{x}+{y}")
        self.root.minsize(600, 450)

        self._create_widgets()

        # Start event polling
        self.root.after(50, self._check_events)

        self.root.protocol("WM_DELETE_WINDOW", self._on_closing)

        logger.info("Main window initialized")

    def _create_widgets(self):
        """Create all UI widgets"""
        self.main_frame = ctk.CTkFrame(self.root, fg_color="transparent")
        self.main_frame.pack(fill="both", expand=True)

        self._create_top_bar()

        self.conversation_view = ConversationView(self.main_frame)
        self.conversation_view.pack(fill="both", expand=True, padx=10, pady=(10, 5))

        self._create_bottom_bar()

    def _create_top_bar(self):
        """Create top bar with title, status indicator and controls"""
        top_bar = ctk.CTkFrame(self.main_frame, height=56, corner_radius=0)
        top_bar.pack(fill="x")
        top_bar.pack_propagate(False)

        ctk.CTkLabel(
            top_bar,
            text="✦ Gemini Ultra",
            font=ctk.CTkFont(size=20, weight="bold")
        ).pack(side="left", padx=16)

        status_frame = ctk.CTkFrame(top_bar, fg_color="transparent")
        status_frame.pack(side="left", padx=10)

        self.status_indicator = ctk.CTkLabel(
            status_frame,
            text="●",
            font=ctk.CTkFont(size=18),
            text_color="#666666"
        )
        self.status_indicator.pack(side="left", padx=(0, 5))

        self.status_label = ctk.CTkLabel(status_frame, text="Idle", font=ctk.CTkFont(size=13))
        self.status_label.pack(side="left")

        self.settings_btn = ctk.CTkButton(
            top_bar,
            text="☰ Settings",
            width=100,
            command=self._open_settings
        )
        self.settings_btn.pack(side="right", padx=(5, 16))

        self.theme_btn = ctk.CTkButton(
            top_bar,
            text=self._theme_button_text(),
            width=90,
            command=self._toggle_theme
        )
        self.theme_btn.pack(side="right", padx=5)

        self.clear_btn = ctk.CTkButton(
            top_bar,
            text="🗑 Clear",
            width=90,
            command=self._clear_conversation,
            fg_color="#8B0000"
        )
        self.clear_btn.pack(side="right", padx=5)

    def _create_bottom_bar(self):
        """Create composer with image previews, input and send button"""
        bottom_bar = ctk.CTkFrame(self.main_frame, fg_color="transparent")
        bottom_bar.pack(fill="x", padx=10, pady=(0, 10))

        # Image previews, only packed while images are pending
        self.preview_frame = ctk.CTkFrame(bottom_bar, fg_color="transparent")

        self.input_frame = ctk.CTkFrame(bottom_bar, corner_radius=20)
        self.input_frame.pack(fill="x")
        input_frame = self.input_frame

        self.attach_btn = ctk.CTkButton(
            input_frame,
            text="🖼",
            width=44,
            height=44,
            command=self._attach_images
        )
        self.attach_btn.pack(side="left", padx=(8, 5), pady=8)

        self.text_entry = ctk.CTkTextbox(
            input_frame,
            height=48,
            wrap="word",
            font=ctk.CTkFont(size=13)
        )
        self.text_entry.pack(side="left", fill="x", expand=True, pady=8)
        self.text_entry.bind("<Shift-Return>", self._on_newline)
        self.text_entry.bind("<Return>", self._on_send_text)
        self.text_entry.bind("<KeyRelease>", lambda event: self._refresh_send_state())

        self.send_btn = ctk.CTkButton(
            input_frame,
            text="Send",
            width=90,
            height=44,
            command=self._send_text_message,
            state="disabled"
        )
        self.send_btn.pack(side="left", padx=8, pady=8)

        ctk.CTkLabel(
            bottom_bar,
            text="Gemini can make mistakes. Please check important information.",
            font=ctk.CTkFont(size=11),
            text_color="#888888"
        ).pack(pady=(4, 0))

    def _get_text(self):
        return self.text_entry.get("1.0", "end-1c")

    def _has_content(self):
        return bool(self._get_text().strip()) or bool(self.pending_images)

    def _refresh_send_state(self):
        """Enable Send only when idle and there is something to send"""
        enabled = not self.is_busy and self._has_content()
        self.send_btn.configure(state="normal" if enabled else "disabled")

    def _send_text_message(self):
        """Send text and pending images from the composer"""
        if self.is_busy or not self._has_content():
            return

        accepted = self.publish_event("user_message", {
            "text": self._get_text(),
            "images": list(self.pending_images)
        })
        if not accepted:
            # Keep the draft so it can be sent once the reply finishes
            return

        # Turn state events arrive through the queue and settle is_busy later
        self.is_busy = True
        self.text_entry.delete("1.0", "end")
        self._clear_pending_images()

    def _on_send_text(self, event):
        """Handle Enter key in text entry"""
        self._send_text_message()
        return "break"

    def _on_newline(self, event):
        """Shift+Enter inserts a newline"""
        self.text_entry.insert("insert", "\n")
        return "break"

    def _attach_images(self):
        """Pick image files to attach to the next message"""
        paths = filedialog.askopenfilenames(
            parent=self.root,
            title="Add images",
            filetypes=[("Images", "*.png *.jpg *.jpeg *.gif *.webp *.bmp"), ("All files", "*.*")]
        )
        if paths:
            self.publish_event("attach_images", {"paths": list(paths)})

    def on_images_attached(self, attachments):
        """Add encoded attachments to the pending previews"""
        self.pending_images.extend(attachments)
        self._render_previews()
        self._refresh_send_state()

    def _remove_image(self, index):
        if 0 <= index < len(self.pending_images):
            del self.pending_images[index]
        self._render_previews()
        self._refresh_send_state()

    def _clear_pending_images(self):
        self.pending_images = []
        self._render_previews()
        self._refresh_send_state()

    def _render_previews(self):
        for widget in self.preview_frame.winfo_children():
            widget.destroy()
        self._preview_refs = []

        if not self.pending_images:
            self.preview_frame.pack_forget()
            return

        for index, attachment in enumerate(self.pending_images):
            img = decode_attachment(attachment)
            img.thumbnail(PREVIEW_SIZE)
            thumb = ctk.CTkImage(light_image=img, dark_image=img, size=img.size)
            self._preview_refs.append(thumb)

            cell = ctk.CTkFrame(self.preview_frame, fg_color="transparent")
            cell.pack(side="left", padx=(0, 8))
            ctk.CTkLabel(cell, image=thumb, text="").pack()
            ctk.CTkButton(
                cell,
                text="✕",
                width=24,
                height=20,
                fg_color="#DC2626",
                command=lambda i=index: self._remove_image(i)
            ).pack(pady=(2, 0))

        self.preview_frame.pack(fill="x", pady=(0, 6), before=self.input_frame)

    def _clear_conversation(self):
        """Clear conversation after confirmation"""
        if messagebox.askyesno(
            "Clear Chat",
            "Are you sure you want to clear the conversation?",
            parent=self.root
        ):
            self.publish_event("clear_conversation", {})

    def _toggle_theme(self):
        """Switch between light and dark appearance"""
        mode = "light" if ctk.get_appearance_mode() == "Dark" else "dark"
        ctk.set_appearance_mode(mode)
        self.theme_btn.configure(text=self._theme_button_text())
        self.conversation_view.refresh_theme()

    @staticmethod
    def _theme_button_text():
        return "☀ Light" if ctk.get_appearance_mode() == "Dark" else "☾ Dark"

    def _open_settings(self):
        """Open settings panel"""
        if self.settings_panel is not None and self.settings_panel.winfo_exists():
            self.settings_panel.focus()
            return

        self.settings_panel = SettingsPanel(
            self.root,
            self.app.session.settings,
            on_change=lambda **changes: self.publish_event("settings_changed", changes)
        )

    def _on_closing(self):
        """Handle window close event"""
        logger.info("Window closing")
        self.publish_event("shutdown", {})
        self.root.destroy()

    def update_status(self, state):
        """
        Update status indicator and composer for a turn state

        Args:
            state: TurnState of the current turn
        """
        self.is_busy = state.is_active

        labels = {
            TurnState.IDLE: ("Idle", "#666666"),
            TurnState.SENDING: ("Sending", "#FFA500"),
            TurnState.STREAMING: ("Streaming", "#4CAF50"),
            TurnState.COMPLETED: ("Idle", "#666666"),
            TurnState.CANCELLED: ("Cancelled", "#666666"),
            TurnState.FAILED: ("Error", "#DC2626"),
        }
        text, color = labels.get(state, ("Idle", "#666666"))
        self.status_label.configure(text=text)
        self.status_indicator.configure(text_color=color)

        self.attach_btn.configure(state="disabled" if self.is_busy else "normal")
        self.text_entry.configure(state="disabled" if self.is_busy else "normal")
        self._refresh_send_state()

    def show_info(self, title, message):
        """Show info dialog"""
        dialog = ctk.CTkToplevel(self.root)
        dialog.title(title)
        dialog.geometry("400x150")

        label = ctk.CTkLabel(dialog, text=message, wraplength=350)
        label.pack(padx=20, pady=20)

        btn = ctk.CTkButton(dialog, text="OK", command=dialog.destroy)
        btn.pack(pady=10)

        dialog.transient(self.root)
        dialog.grab_set()

    def publish_event(self, event_type, data):
        """Publish event to application; returns the handler's result"""
        if hasattr(self.app, 'handle_gui_event'):
            return self.app.handle_gui_event(event_type, data)
        return None

    def _check_events(self):
        """Poll event queue for updates from other threads"""
        try:
            while True:
                event = self.event_queue.get_nowait()
                self._handle_event(event)
        except queue.Empty:
            pass
        finally:
            self.root.after(50, self._check_events)

    def _handle_event(self, event):
        """Handle events from other threads"""
        event_type = event.get("type")
        data = event.get("data", {})

        if event_type == "transcript":
            change = data.get("event")
            if change == "appended":
                self.conversation_view.add_message(data["message"])
            elif change == "updated":
                self.conversation_view.update_message(data["message"])
            elif change == "cleared":
                self.conversation_view.clear_conversation()

        elif event_type == "turn_state":
            self.update_status(data.get("state"))

        elif event_type == "images_attached":
            self.on_images_attached(data.get("images", []))

        elif event_type == "error":
            self.show_info("Error", data.get("message", "Unknown error"))

    def add_event(self, event_type, data):
        """Add event to queue (called from other threads)"""
        self.event_queue.put({"type": event_type, "data": data})

    def run(self):
        """Start the GUI main loop"""
        logger.info("Starting GUI main loop")
        self.root.mainloop()
