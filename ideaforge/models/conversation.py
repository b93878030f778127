"""
Conversation transcript and the tagged result returned by the enhancement endpoint.
"""

import json
from enum import Enum
from typing import Iterable, List, Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ideaforge.errors import UpstreamMalformedResponse


class Phase(str, Enum):
    ANALYZE = "analyze"
    CONTINUE = "continue"


class Turn(BaseModel):
    """A single message in the conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["assistant", "user"]
    content: str


class Transcript:
    """
    Append-only, alternating sequence of turns.

    Two consecutive turns never share a role, so the user can never send two
    replies without an assistant turn in between.
    """

    def __init__(self, turns: Iterable[Turn] = ()):
        self._turns: List[Turn] = []
        for turn in turns:
            self.append(turn)

    @classmethod
    def from_messages(cls, messages: Iterable[dict]) -> "Transcript":
        """Build a transcript from raw role/content dicts, ignoring system messages."""
        return cls(
            Turn(role=message["role"], content=message["content"])
            for message in messages
            if message.get("role") != "system"
        )

    def append(self, turn: Turn) -> None:
        if self._turns and self._turns[-1].role == turn.role:
            raise ValueError(f"Two consecutive '{turn.role}' turns are not allowed")
        self._turns.append(turn)

    def extended(self, turn: Turn) -> "Transcript":
        """Return a new transcript with ``turn`` appended, leaving this one untouched."""
        copy = Transcript(self._turns)
        copy.append(turn)
        return copy

    @property
    def turns(self) -> Tuple[Turn, ...]:
        return tuple(self._turns)

    def as_messages(self) -> List[dict]:
        return [{"role": turn.role, "content": turn.content} for turn in self._turns]

    def __len__(self):
        return len(self._turns)

    def __iter__(self):
        return iter(self._turns)


class Continuing(BaseModel):
    """The model needs more answers before it can finish."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    done: Literal[False] = False
    message: str = Field(..., min_length=1)


class Done(BaseModel):
    """The model produced the terminal artifact."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    done: Literal[True] = True
    artifact: str = Field(..., min_length=1, alias="enhancedPrompt")

    def to_wire(self) -> dict:
        return {"done": True, "enhancedPrompt": self.artifact}


EnhancementResult = Union[Continuing, Done]


def parse_enhancement_response(content: str) -> EnhancementResult:
    """
    Parse the model's raw JSON reply into exactly one result variant.

    Raises:
        UpstreamMalformedResponse: if the reply is not JSON, has no boolean
            ``done`` flag, or mixes fields of both variants.
    """
    try:
        payload = json.loads(content)
    except (TypeError, json.JSONDecodeError) as e:
        raise UpstreamMalformedResponse(f"Model reply is not valid JSON: {e}") from e

    if not isinstance(payload, dict) or not isinstance(payload.get("done"), bool):
        raise UpstreamMalformedResponse("Model reply is missing the 'done' flag")

    variant = Done if payload["done"] else Continuing
    try:
        return variant.model_validate(payload)
    except ValidationError as e:
        raise UpstreamMalformedResponse(f"Model reply does not match the expected shape: {e}") from e
