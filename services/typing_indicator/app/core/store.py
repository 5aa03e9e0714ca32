from typing import Optional

from .config import Settings
from .models import Persona, PersonaType


class SessionStore:
    """Knows which persona the current process acts as."""

    def __init__(self, self_persona: Optional[Persona] = None):
        self.self_persona = self_persona

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionStore":
        if settings.SELF_PERSONA_ID is None:
            return cls()
        return cls(
            Persona(
                id=settings.SELF_PERSONA_ID,
                type=PersonaType(settings.SELF_PERSONA_TYPE),
            )
        )

    def is_self(self, persona: Optional[Persona]) -> bool:
        return self.self_persona is not None and persona == self.self_persona
