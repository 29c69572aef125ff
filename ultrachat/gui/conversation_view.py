"""
Conversation view component for displaying the chat transcript
"""
import tkinter as tk
import customtkinter as ctk
from ultrachat.ai.vision_handler import decode_attachment
from ultrachat.utils.logger import get_logger
from ultrachat.utils.markdown_text import to_segments

logger = get_logger("conversation_view")

THUMBNAIL_SIZE = (128, 128)
REPLY_WIDTH = 64  # characters

USER_TEXT = "white"
MODEL_TEXT = ("#1F2937", "#F3F4F6")
MODEL_BG = ("#FFFFFF", "#1F2937")
ERROR_TEXT = "#DC2626"
CODE_BG = ("#F3F4F6", "#111827")
QUOTE_TEXT = ("#6B7280", "#9CA3AF")
LINK_TEXT = ("#2563EB", "#60A5FA")


def _pick(color):
    """Resolve a (light, dark) pair for plain tk widgets"""
    if isinstance(color, (tuple, list)):
        return color[1] if ctk.get_appearance_mode() == "Dark" else color[0]
    return color


class ConversationView(ctk.CTkScrollableFrame):
    """Scrollable transcript display that updates bubbles in place by id"""

    def __init__(self, parent, **kwargs):
        super().__init__(parent, **kwargs)

        self.configure(fg_color="transparent")
        self._bubbles = {}  # message id -> content widget
        self._messages = {}  # message id -> last rendered message
        self._thumbnails = []  # keep CTkImage references alive
        self._empty_state = None

        self._fonts = {
            "body": ctk.CTkFont(size=13),
            "bold": ctk.CTkFont(size=13, weight="bold"),
            "italic": ctk.CTkFont(size=13, slant="italic"),
            "bold_italic": ctk.CTkFont(size=13, weight="bold", slant="italic"),
            "mono": ctk.CTkFont(family="Courier", size=12),
            "h1": ctk.CTkFont(size=20, weight="bold"),
            "h2": ctk.CTkFont(size=17, weight="bold"),
            "h3": ctk.CTkFont(size=15, weight="bold"),
        }

        self._show_empty_state()

    def add_message(self, message):
        """
        Add a message bubble to the conversation view

        Args:
            message: Message record to render
        """
        self._hide_empty_state()

        msg_frame = ctk.CTkFrame(self, fg_color="transparent")
        msg_frame.pack(fill="x", padx=10, pady=5)

        if message.is_user:
            anchor = "e"
            bg_color = ("#4F46E5", "#4338CA")  # Indigo for user
            text_color = USER_TEXT
            prefix = "You"
        else:
            anchor = "w"
            bg_color = MODEL_BG
            text_color = MODEL_TEXT
            prefix = "Gemini"

        bubble = ctk.CTkFrame(msg_frame, fg_color=bg_color, corner_radius=14)
        bubble.pack(anchor=anchor, padx=5)

        header = ctk.CTkLabel(
            bubble,
            text=f"{prefix} • {message.timestamp.strftime('%H:%M:%S')}",
            font=ctk.CTkFont(size=11, weight="bold"),
            text_color=text_color
        )
        header.pack(anchor="w", padx=12, pady=(8, 2))

        if message.images:
            self._add_thumbnails(bubble, message.images)

        if message.is_user:
            # User text is shown as typed
            content = ctk.CTkLabel(
                bubble,
                text=message.text,
                font=self._fonts["body"],
                text_color=text_color,
                wraplength=520,
                justify="left"
            )
            if message.text:
                content.pack(anchor="w", padx=12, pady=(0, 10))
        else:
            content = self._create_reply_text(bubble)
            content.pack(anchor="w", padx=12, pady=(0, 10))
            self._render_reply(content, message)

        self._bubbles[message.id] = content
        self._messages[message.id] = message

        self.after(50, self._scroll_to_bottom)

    def update_message(self, message):
        """
        Re-render the text of an existing bubble

        Args:
            message: Updated message record (same id)
        """
        content = self._bubbles.get(message.id)
        if content is None:
            # Update raced with a clear
            return

        self._messages[message.id] = message
        if message.is_user:
            content.configure(text=message.text)
        else:
            self._render_reply(content, message)
        self.after(50, self._scroll_to_bottom)

    def clear_conversation(self):
        """Clear all messages from the view"""
        for widget in self.winfo_children():
            widget.destroy()
        self._bubbles = {}
        self._messages = {}
        self._thumbnails = []
        self._empty_state = None
        self._show_empty_state()

    def refresh_theme(self):
        """Recolour reply widgets after the appearance mode changes"""
        for message_id, message in self._messages.items():
            if not message.is_user:
                self._render_reply(self._bubbles[message_id], message)

    def _create_reply_text(self, bubble):
        widget = tk.Text(
            bubble,
            wrap="word",
            width=REPLY_WIDTH,
            height=1,
            font=self._fonts["body"],
            borderwidth=0,
            highlightthickness=0,
            relief="flat",
            padx=0,
            pady=0,
            cursor="arrow"
        )

        widget.tag_config("bold", font=self._fonts["bold"])
        widget.tag_config("italic", font=self._fonts["italic"])
        widget.tag_config("bold_italic", font=self._fonts["bold_italic"])
        widget.tag_config("mono", font=self._fonts["mono"])
        for level in ("h1", "h2", "h3"):
            widget.tag_config(level, font=self._fonts[level], spacing1=4, spacing3=2)
        widget.tag_config("code_block", lmargin1=8, lmargin2=8, spacing1=2, spacing3=2)
        widget.tag_config("quote", lmargin1=12, lmargin2=12)
        widget.tag_config("strike", overstrike=True)
        widget.tag_config("link", underline=True)
        return widget

    def _render_reply(self, widget, message):
        """Render a model reply as markdown into its read-only text widget"""
        widget.configure(bg=_pick(MODEL_BG), fg=_pick(MODEL_TEXT))
        for tag in ("code", "code_block"):
            widget.tag_config(tag, background=_pick(CODE_BG))
        widget.tag_config("quote", foreground=_pick(QUOTE_TEXT))
        widget.tag_config("link", foreground=_pick(LINK_TEXT))
        widget.tag_config("error", foreground=ERROR_TEXT)

        widget.configure(state="normal")
        widget.delete("1.0", "end")

        if message.is_error:
            shown = f"⚠ {message.text}"
            widget.insert("end", shown, ("error",))
        elif not message.text:
            shown = "…"
            widget.insert("end", shown)
        else:
            shown = ""
            for text, tags in to_segments(message.text):
                widget.insert("end", text, tags + (_font_tag(tags),))
                shown += text

        widget.configure(state="disabled")
        _fit_height(widget, shown)

    def _add_thumbnails(self, bubble, images):
        grid = ctk.CTkFrame(bubble, fg_color="transparent")
        grid.pack(anchor="w", padx=12, pady=(0, 6))

        for attachment in images:
            try:
                img = decode_attachment(attachment)
            except OSError as e:
                logger.warning(f"Could not render attachment thumbnail: {e}")
                continue

            img.thumbnail(THUMBNAIL_SIZE)
            thumb = ctk.CTkImage(light_image=img, dark_image=img, size=img.size)
            self._thumbnails.append(thumb)
            ctk.CTkLabel(grid, image=thumb, text="").pack(side="left", padx=(0, 6))

    def _show_empty_state(self):
        if self._empty_state is not None:
            return

        frame = ctk.CTkFrame(self, fg_color="transparent")
        frame.pack(expand=True, fill="both", pady=80)

        ctk.CTkLabel(
            frame,
            text="✦ Welcome to Gemini Ultra",
            font=ctk.CTkFont(size=22, weight="bold")
        ).pack(pady=(0, 8))
        ctk.CTkLabel(
            frame,
            text="Upload images to ask questions about them, or just chat.",
            font=ctk.CTkFont(size=13),
            text_color="#888888"
        ).pack()

        self._empty_state = frame

    def _hide_empty_state(self):
        if self._empty_state is not None:
            self._empty_state.destroy()
            self._empty_state = None

    def _scroll_to_bottom(self):
        """Scroll to the bottom of the conversation"""
        self._parent_canvas.yview_moveto(1.0)


def _font_tag(tags):
    """Pick the single font tag for a run; tk applies only one font per character"""
    for level in ("h1", "h2", "h3"):
        if level in tags:
            return level
    if "code" in tags or "code_block" in tags:
        return "mono"
    if "bold" in tags and "italic" in tags:
        return "bold_italic"
    if "bold" in tags:
        return "bold"
    if "italic" in tags:
        return "italic"
    return "body"


def _fit_height(widget, text):
    # Estimated from the character width so it works before the widget is mapped
    width = int(widget.cget("width"))
    rows = sum(max(1, -(-len(line) // width)) for line in text.split("\n"))
    widget.configure(height=max(1, rows))
