import enum
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class Status(str, enum.Enum):
    LOBBY = 'lobby'
    ACTIVE = 'active'
    FINISHED = 'finished'


def new_player_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Player:
    display_name: str
    connection_ref: Optional[str] = None
    has_submitted: bool = False
    id: str = field(default_factory=new_player_id)

    @property
    def connected(self) -> bool:
        return self.connection_ref is not None

    def to_dict(self) -> Dict[str, Any]:
        """Roster entry. Never includes the submitted identity."""
        return {
            'id': self.id,
            'name': self.display_name,
            'has_submitted': self.has_submitted,
            'connected': self.connected,
        }


@dataclass(frozen=True)
class Reveal:
    identity: str
    guessed_by: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {'identity': self.identity, 'guessed_by': self.guessed_by}
