"""
Pydantic schemas for conversation turns, classification labels and route results.
"""

from pydantic import BaseModel, ConfigDict, Field

from .enums import Role, Subject

NO_REASON = "No reason provided."


class Turn(BaseModel):
    """A single message in the conversation, oldest first."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def render(self) -> str:
        """Render as a `role: content` prompt line."""
        return f"{self.role.value}: {self.content}"


class ClassificationLabel(BaseModel):
    """Subject label recovered from the classifier output."""

    model_config = ConfigDict(frozen=True)

    subject: Subject = Field(default=Subject.UNKNOWN)
    reason: str = Field(default=NO_REASON)


class RouteResult(BaseModel):
    """Envelope returned by every routing operation."""

    model_config = ConfigDict(frozen=True)

    agent: Subject = Field(..., description="Responder that produced the answer")
    response: str = Field(..., description="Answer text, or an explanation on failure")
    reason: str = Field(..., description="Classifier rationale or failure reason")


class ConstantEntry(BaseModel):
    """One row of the physical constant lookup table."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Lookup name, e.g. 'speed of light'")
    symbol: str
    value: str = Field(..., description="Numeric value kept as text to preserve notation")
    unit: str = ""
    description: str = ""
