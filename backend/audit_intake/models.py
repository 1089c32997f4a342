from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# --- form sections (wire names follow the analysis engine's contract) ---


class Customer(BaseModel):
    name: str = ""
    email: str = ""
    company: str = ""
    phone: str = ""
    role: str = ""


class Bms(BaseModel):
    present: bool = False
    trending: str = "Unknown"
    vendor: str = ""
    version: str = ""
    notes: str = ""


class Hvac(BaseModel):
    systemType: str = "Chilled Water"
    coolingCapacityTR: float = 500
    numChillers: int = 2
    chillerMakeModel: str = ""
    boilersPresent: bool = False
    boilerFuel: str = "Electric"
    ventilationControl: str = "Schedule"


class Lighting(BaseModel):
    predominant: str = "LED"
    controls: list[str] = Field(default_factory=lambda: ["Manual Switches"])


class Envelope(BaseModel):
    glazing: str = "Double"
    insulationLevel: str = "Medium"
    roofType: str = ""


class Facility(BaseModel):
    type: str = "Office"
    area_m2: float = 1200
    yearBuilt: int | None = 2010
    floors: int | None = 10
    occupancy: int | None = 300
    hours_per_week: float | None = 60
    location: str = "Dubai"
    utilityProvider: str = ""
    meterId: str = ""
    bms: Bms = Field(default_factory=Bms)
    hvac: Hvac = Field(default_factory=Hvac)
    lighting: Lighting = Field(default_factory=Lighting)
    envelope: Envelope = Field(default_factory=Envelope)


class Energy(BaseModel):
    annual_kwh: float = 180000
    annual_cooling_kwh: float | None = 0
    tariff_aed_per_kwh: float = 0.35
    emission_factor_kg_per_kwh: float | None = 0.35
    carbon_factor_kg_per_kwh: float | None = 0.35
    best_possible_eui: float | None = 110
    gas_annual_mmbtu: float | None = 0
    diesel_annual_liters: float | None = 0


class Targets(BaseModel):
    # Free-text fields such as ``objectives`` and ``constraints`` ride along when filled.
    model_config = ConfigDict(extra="allow")

    budgetAED: float = 0
    paybackTargetYears: float = 3


class SubmissionPayload(BaseModel):
    customer: Customer
    facility: Facility
    energy: Energy
    targets: Targets


class AnalysisRequest(BaseModel):
    sessionId: str
    customerData: SubmissionPayload
    files: list[str] = Field(default_factory=list)


# --- HTTP responses ---


class PresignResponse(BaseModel):
    uploadUrl: str
    key: str


class ApiResponse(BaseModel):
    """Normalized outcome of an analysis request. ``status`` is 0 for client-side failures."""

    # Upstream may send extra fields alongside ``ok``; they are passed through untouched.
    model_config = ConfigDict(extra="allow")

    ok: bool
    analysis: str | None = None
    metrics: Any = None
    error: str | None = None
    status: int | None = None
