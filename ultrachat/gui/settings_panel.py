"""
Settings panel for system instruction and temperature
"""
import customtkinter as ctk
from ultrachat.models.settings import MAX_TEMPERATURE, MIN_TEMPERATURE


class SettingsPanel(ctk.CTkToplevel):
    """Side window editing the settings used by future turns"""

    def __init__(self, parent, settings, on_change):
        """
        Args:
            parent: Owning window
            settings: Current ChatSettings
            on_change: Callable receiving changed fields as keyword arguments
        """
        super().__init__(parent)

        self.on_change = on_change

        self.title("Configuration")
        self.geometry("360x520")
        self.resizable(False, True)

        # System instruction
        ctk.CTkLabel(
            self,
            text="System Instruction",
            font=ctk.CTkFont(size=13, weight="bold")
        ).pack(anchor="w", padx=16, pady=(16, 4))

        self.instruction_box = ctk.CTkTextbox(self, height=140, wrap="word")
        self.instruction_box.pack(fill="x", padx=16)
        self.instruction_box.insert("1.0", settings.system_instruction)
        self.instruction_box.bind("<KeyRelease>", self._on_instruction_changed)

        ctk.CTkLabel(
            self,
            text="Defines how the model should behave.",
            font=ctk.CTkFont(size=11),
            text_color="#888888"
        ).pack(anchor="w", padx=16, pady=(2, 16))

        # Temperature
        self.temperature_label = ctk.CTkLabel(
            self,
            text=self._temperature_text(settings.temperature),
            font=ctk.CTkFont(size=13, weight="bold")
        )
        self.temperature_label.pack(anchor="w", padx=16, pady=(0, 4))

        self.temperature_slider = ctk.CTkSlider(
            self,
            from_=MIN_TEMPERATURE,
            to=MAX_TEMPERATURE,
            number_of_steps=int((MAX_TEMPERATURE - MIN_TEMPERATURE) * 10),
            command=self._on_temperature_changed
        )
        self.temperature_slider.set(settings.temperature)
        self.temperature_slider.pack(fill="x", padx=16)

        scale = ctk.CTkFrame(self, fg_color="transparent")
        scale.pack(fill="x", padx=16)
        ctk.CTkLabel(scale, text="Precise (0)", font=ctk.CTkFont(size=11),
                     text_color="#888888").pack(side="left")
        ctk.CTkLabel(scale, text="Creative (2)", font=ctk.CTkFont(size=11),
                     text_color="#888888").pack(side="right")

        # About
        about = ctk.CTkFrame(self, corner_radius=8)
        about.pack(fill="x", padx=16, pady=24)
        ctk.CTkLabel(
            about,
            text="About Gemini Ultra Chat",
            font=ctk.CTkFont(size=12, weight="bold")
        ).pack(anchor="w", padx=12, pady=(10, 2))
        ctk.CTkLabel(
            about,
            text="Built with customtkinter and the Gemini API. "
                 "Supports image recognition and advanced reasoning models.",
            font=ctk.CTkFont(size=11),
            wraplength=290,
            justify="left"
        ).pack(anchor="w", padx=12, pady=(0, 10))

        ctk.CTkButton(self, text="Close", width=100, command=self.destroy).pack(pady=(0, 16))

        self.transient(parent)

    def _on_instruction_changed(self, event=None):
        text = self.instruction_box.get("1.0", "end-1c")
        self.on_change(system_instruction=text)

    def _on_temperature_changed(self, value):
        temperature = round(float(value), 1)
        self.temperature_label.configure(text=self._temperature_text(temperature))
        self.on_change(temperature=temperature)

    @staticmethod
    def _temperature_text(temperature):
        return f"Creativity (Temperature): {temperature:.1f}"
