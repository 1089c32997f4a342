from __future__ import annotations

from typing import Any, Iterable, Literal, get_args

from pydantic import BaseModel, Field

from .models import AnalysisRequest, ApiResponse, Customer, Energy, Facility, SubmissionPayload, Targets
from .session import new_session_id

DEFAULT_CARBON_FACTOR = 0.35

Section = Literal["customer", "facility", "energy", "targets"]
StatusKind = Literal["idle", "ok", "err"]


class Status(BaseModel):
    kind: StatusKind = "idle"
    msg: str | None = None


class FormState(BaseModel):
    """Everything the intake page holds. Replaced, never mutated: see the update functions below."""

    sessionId: str = ""
    customer: Customer = Field(default_factory=Customer)
    facility: Facility = Field(default_factory=Facility)
    energy: Energy = Field(default_factory=Energy)
    targets: Targets = Field(default_factory=Targets)
    # S3 keys or URLs, one per line
    fileList: str = ""
    status: Status = Field(default_factory=Status)
    result: ApiResponse | None = None


# --- file list text ---


def parse_file_list(text: str) -> list[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def merge_file_list(text: str, keys: Iterable[str]) -> str:
    merged = dict.fromkeys([*parse_file_list(text), *(k.strip() for k in keys if k.strip())])
    return "\n".join(merged)


# --- pure updates ---


def new_form(session_id: str | None = None) -> FormState:
    return FormState(sessionId=session_id if session_id is not None else new_session_id())


def start_new_session(form: FormState, session_id: str | None = None) -> FormState:
    # Uploaded files belong to the old session; result and status are cleared with it.
    return form.model_copy(
        update={
            "sessionId": session_id if session_id is not None else new_session_id(),
            "result": None,
            "status": Status(),
        }
    )


def update_section(form: FormState, path: str, **changes: Any) -> FormState:
    """
    Return a copy of ``form`` with ``changes`` applied to the section at ``path``.

    ``path`` is dotted, e.g. ``"customer"`` or ``"facility.hvac"``. Values are validated
    against the section's model, so unknown fields or bad types raise ``ValidationError``.
    """
    head, _, rest = path.partition(".")
    if head not in get_args(Section):
        raise KeyError(path)
    section = getattr(form, head)
    updated = _update_model(section, rest, changes)
    return form.model_copy(update={head: updated})


def _update_model(model: BaseModel, path: str, changes: dict[str, Any]) -> BaseModel:
    if path:
        head, _, rest = path.partition(".")
        child = getattr(model, head)
        if not isinstance(child, BaseModel):
            raise KeyError(head)
        changes = {head: _update_model(child, rest, changes).model_dump()}
    data = {**model.model_dump(), **changes}
    return type(model).model_validate(data)


def set_file_list(form: FormState, text: str) -> FormState:
    return form.model_copy(update={"fileList": text})


def with_result(form: FormState, result: ApiResponse) -> FormState:
    if result.ok:
        status = Status(kind="ok", msg="Analysis complete")
    else:
        code = result.status if result.status is not None else "unknown"
        status = Status(kind="err", msg=result.error or f"Request failed (status {code})")
    return form.model_copy(update={"result": result, "status": status})


# --- submission ---


def can_run(form: FormState) -> bool:
    return (
        bool(form.sessionId)
        and bool(form.customer.name)
        and bool(form.customer.email)
        and form.facility.area_m2 > 0
        and form.energy.annual_kwh >= 0
    )


def build_payload(form: FormState) -> SubmissionPayload:
    energy = form.energy
    carbon = energy.emission_factor_kg_per_kwh
    if carbon is None:
        carbon = energy.carbon_factor_kg_per_kwh
    if carbon is None:
        carbon = DEFAULT_CARBON_FACTOR
    return SubmissionPayload(
        customer=form.customer,
        facility=form.facility,
        energy=energy.model_copy(update={"carbon_factor_kg_per_kwh": carbon}),
        targets=form.targets,
    )


def build_request(form: FormState) -> AnalysisRequest:
    return AnalysisRequest(
        sessionId=form.sessionId,
        customerData=build_payload(form),
        files=parse_file_list(form.fileList),
    )
