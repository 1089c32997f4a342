import re

import pytest
from pydantic import ValidationError

from audit_intake.form import (
    build_payload,
    build_request,
    can_run,
    merge_file_list,
    new_form,
    parse_file_list,
    set_file_list,
    start_new_session,
    update_section,
    with_result,
)
from audit_intake.models import ApiResponse
from audit_intake.session import new_session_id


def _ready_form():
    form = new_form("sess_test")
    return update_section(form, "customer", name="Ada", email="ada@example.com")


def test_session_id_shape():
    ids = {new_session_id() for _ in range(50)}
    assert len(ids) == 50
    for sid in ids:
        assert re.fullmatch(r"sess_[a-zA-Z0-9]{24}", sid)


def test_new_form_defaults():
    form = new_form()
    assert form.sessionId.startswith("sess_")
    assert form.facility.type == "Office"
    assert form.facility.hvac.systemType == "Chilled Water"
    assert form.facility.lighting.controls == ["Manual Switches"]
    assert form.energy.annual_kwh == 180000
    assert form.targets.paybackTargetYears == 3
    assert form.status.kind == "idle"


def test_file_list_helpers():
    assert parse_file_list(" a \n\n b\n") == ["a", "b"]
    assert merge_file_list("a\nb", ["b", "c", "a", "d"]) == "a\nb\nc\nd"
    assert merge_file_list("", ["x"]) == "x"


def test_update_section_is_pure():
    form = new_form("sess_1")
    updated = update_section(form, "facility.hvac", coolingCapacityTR=650, numChillers=3)
    assert updated.facility.hvac.coolingCapacityTR == 650
    assert updated.facility.hvac.numChillers == 3
    assert updated.facility.hvac.boilerFuel == "Electric"
    assert form.facility.hvac.coolingCapacityTR == 500

    updated = update_section(updated, "facility", area_m2=2500)
    assert updated.facility.area_m2 == 2500
    assert updated.facility.hvac.numChillers == 3


def test_update_section_rejects_unknown_section_and_bad_values():
    form = new_form("sess_1")
    with pytest.raises(KeyError):
        update_section(form, "weather", temp=40)
    with pytest.raises(ValidationError):
        update_section(form, "energy", annual_kwh="lots")


def test_targets_accept_free_text():
    form = update_section(new_form("s"), "targets", objectives="cut cooling load")
    assert build_payload(form).model_dump()["targets"]["objectives"] == "cut cooling load"


def test_can_run():
    assert can_run(_ready_form())
    assert not can_run(new_form("sess_1"))
    assert not can_run(start_new_session(_ready_form(), session_id=""))
    assert not can_run(update_section(_ready_form(), "facility", area_m2=0))
    assert not can_run(update_section(_ready_form(), "energy", annual_kwh=-1))
    assert can_run(update_section(_ready_form(), "energy", annual_kwh=0))


def test_carbon_factor_fallbacks():
    form = update_section(_ready_form(), "energy", emission_factor_kg_per_kwh=0.42, carbon_factor_kg_per_kwh=0.1)
    assert build_payload(form).energy.carbon_factor_kg_per_kwh == 0.42

    form = update_section(form, "energy", emission_factor_kg_per_kwh=None)
    assert build_payload(form).energy.carbon_factor_kg_per_kwh == 0.1

    form = update_section(form, "energy", carbon_factor_kg_per_kwh=None)
    assert build_payload(form).energy.carbon_factor_kg_per_kwh == 0.35


def test_build_request():
    form = set_file_list(_ready_form(), "sess_test/1_a.pdf\n\nhttps://example.com/b.pdf\n")
    req = build_request(form).model_dump()
    assert req["sessionId"] == "sess_test"
    assert req["files"] == ["sess_test/1_a.pdf", "https://example.com/b.pdf"]
    assert set(req["customerData"]) == {"customer", "facility", "energy", "targets"}
    assert set(req["customerData"]["facility"]) >= {"bms", "hvac", "lighting", "envelope"}
    assert req["customerData"]["customer"]["email"] == "ada@example.com"


def test_with_result_sets_status():
    form = _ready_form()
    ok = with_result(form, ApiResponse(ok=True, analysis="done"))
    assert ok.status.kind == "ok"
    assert ok.status.msg == "Analysis complete"

    err = with_result(form, ApiResponse(ok=False, error="Request timed out", status=0))
    assert err.status.kind == "err"
    assert err.status.msg == "Request timed out"

    err = with_result(form, ApiResponse(ok=False, status=503))
    assert err.status.msg == "Request failed (status 503)"

    err = with_result(form, ApiResponse(ok=False))
    assert err.status.msg == "Request failed (status unknown)"


def test_new_session_clears_result_but_keeps_inputs():
    form = with_result(set_file_list(_ready_form(), "k"), ApiResponse(ok=True, analysis="x"))
    fresh = start_new_session(form, session_id="sess_next")
    assert fresh.sessionId == "sess_next"
    assert fresh.result is None
    assert fresh.status.kind == "idle"
    assert fresh.customer.name == "Ada"
