from .database import Database
from .models import SessionKind, SessionRecord, UnlockedAchievement
from .repository import Repository

__all__ = ["Database", "SessionKind", "SessionRecord", "UnlockedAchievement", "Repository"]
