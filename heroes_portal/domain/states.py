"""
Signup states - Tagged union of the data carried between signup steps.

The state a validation token carries is discriminated by ``step``:

    START --step 1--> STEP1_VALIDATED --step 2--> STEP2_VALIDATED --step 3--> COMPLETED

A token is superseded (never mutated) by the next step's token. There is no
persisted failed state: an abandoned flow simply lets its token expire.
"""

from datetime import date
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .models import Category


class SignupPhase(str, Enum):
    """Where a signup flow currently stands."""

    START = "START"
    STEP1_VALIDATED = "STEP1_VALIDATED"
    STEP2_VALIDATED = "STEP2_VALIDATED"
    COMPLETED = "COMPLETED"


class Step1State(BaseModel):
    """Normalized eligibility data confirmed by step 1."""

    model_config = ConfigDict(frozen=True)

    step: Literal[1] = 1
    category: Category
    serial_id: str
    branch: str | None = None
    relationship: str | None = None
    principal_first_name: str | None = None
    principal_last_name: str | None = None

    @property
    def phase(self) -> SignupPhase:
        return SignupPhase.STEP1_VALIDATED


class Step2State(BaseModel):
    """Step 1 data plus the registry record confirmed by step 2."""

    model_config = ConfigDict(frozen=True)

    step: Literal[2] = 2
    category: Category
    serial_id: str
    branch: str | None = None
    relationship: str | None = None
    principal_first_name: str | None = None
    principal_last_name: str | None = None
    first_name: str
    last_name: str
    dob: date
    registry_ndx: int
    control_number: str | None = None

    @property
    def phase(self) -> SignupPhase:
        return SignupPhase.STEP2_VALIDATED


SignupState = Annotated[Step1State | Step2State, Field(discriminator="step")]

signup_state_adapter: TypeAdapter[Step1State | Step2State] = TypeAdapter(SignupState)
