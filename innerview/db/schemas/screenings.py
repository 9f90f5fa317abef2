import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import Field, model_validator

from .common import (
    ApiModel,
    TimestampedModel,
    StudentSummary,
    UserSummary,
    InstrumentCategory,
    IndicatorType,
    ScreeningStatus,
    RiskLevel,
)


# === Instruments & indicators ===

class ScreeningIndicatorBase(ApiModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    type: IndicatorType
    min_value: float
    max_value: float
    cutoff: Optional[float] = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.min_value > self.max_value:
            raise ValueError("minValue must not exceed maxValue")
        if self.cutoff is not None and not (self.min_value <= self.cutoff <= self.max_value):
            raise ValueError("cutoff must lie between minValue and maxValue")
        return self


class ScreeningIndicatorCreate(ScreeningIndicatorBase):
    instrument_id: uuid.UUID


class ScreeningIndicator(ApiModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    type: str
    min_value: float
    max_value: float
    cutoff: Optional[float] = None
    instrument_id: uuid.UUID


class IndicatorSummary(ApiModel):
    id: uuid.UUID
    name: str
    type: str


class ScreeningInstrumentBase(ApiModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: InstrumentCategory
    age_range: Optional[str] = None
    administration_time: Optional[str] = None
    instructions: Optional[str] = None
    active: bool = True


class ScreeningInstrumentCreate(ScreeningInstrumentBase):
    pass


class ScreeningInstrumentUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    category: Optional[InstrumentCategory] = None
    age_range: Optional[str] = None
    administration_time: Optional[str] = None
    instructions: Optional[str] = None
    active: Optional[bool] = None


class ScreeningInstrument(ScreeningInstrumentBase, TimestampedModel):
    id: uuid.UUID
    category: str


class ScreeningInstrumentListItem(ScreeningInstrument):
    indicators: List[IndicatorSummary] = []


class ScreeningBrief(ApiModel):
    id: uuid.UUID
    applied_at: datetime
    status: str
    student: Optional[StudentSummary] = None


class ScreeningInstrumentWithIndicators(ScreeningInstrument):
    indicators: List[ScreeningIndicator] = []


class ScreeningInstrumentDetail(ScreeningInstrument):
    indicators: List[ScreeningIndicator] = []
    screenings: List[ScreeningBrief] = []


# === Screenings ===

class ScreeningCreate(ApiModel):
    student_id: uuid.UUID
    instrument_id: uuid.UUID
    applied_at: Optional[datetime] = None
    notes: Optional[str] = None
    status: ScreeningStatus = ScreeningStatus.IN_PROGRESS


class ScreeningUpdate(ApiModel):
    applied_at: Optional[datetime] = None
    notes: Optional[str] = None
    status: Optional[ScreeningStatus] = None


class ScreeningResultBase(ApiModel):
    value: float
    risk_level: Optional[RiskLevel] = None
    notes: Optional[str] = None


class ScreeningResultCreate(ScreeningResultBase):
    screening_id: uuid.UUID
    indicator_id: uuid.UUID


class ScreeningResultUpdate(ApiModel):
    value: Optional[float] = None
    risk_level: Optional[RiskLevel] = None
    notes: Optional[str] = None


class BatchResultItem(ScreeningResultBase):
    indicator_id: uuid.UUID


class ScreeningResultBatch(ApiModel):
    results: List[BatchResultItem] = Field(min_length=1)


class ScreeningResult(TimestampedModel):
    id: uuid.UUID
    value: float
    risk_level: Optional[str] = None
    notes: Optional[str] = None
    screening_id: uuid.UUID
    indicator_id: uuid.UUID
    indicator: Optional[ScreeningIndicator] = None


class Screening(TimestampedModel):
    id: uuid.UUID
    applied_at: datetime
    notes: Optional[str] = None
    status: str
    student_id: uuid.UUID
    applied_by_id: uuid.UUID
    instrument_id: uuid.UUID
    student: Optional[StudentSummary] = None
    applied_by: Optional[UserSummary] = None
    instrument: Optional[ScreeningInstrument] = None
    results: List[ScreeningResult] = []


class ScreeningDetail(Screening):
    instrument: Optional[ScreeningInstrumentWithIndicators] = None
