class Translator:
    def __init__(self) -> None:
        self.language = "en"
        self.translations = {
            "en": {},
            "es": {
                "RM Record": "Récord RM",
                "RM Records": "Récords RM",
                "lbs": "lb",
                "kg": "kg",
            },
        }

    def set_language(self, lang: str) -> None:
        self.language = lang

    def gettext(self, key: str) -> str:
        return self.translations.get(self.language, {}).get(key, key)

    def record_count_text(self, count: int) -> str:
        """Return e.g. ``"1 RM Record"`` or ``"4 RM Records"``."""
        key = "RM Records" if count > 1 else "RM Record"
        return f"{count} {self.gettext(key)}"


translator = Translator()
