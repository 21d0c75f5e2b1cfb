"""CSV builder wizard endpoints: one session per browser tab."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile
from pydantic import BaseModel, Field

from waypoint.api.deps import (
    get_artifact_store,
    get_calc_service,
    get_credentials,
    get_session_store,
)
from waypoint.clients.auth import BearerCredentialProvider
from waypoint.clients.calc_service import run_batch
from waypoint.core.exceptions import AuthenticationError, InputValidationError
from waypoint.core.protocols import ICalculationService
from waypoint.models.results import BatchRunResult, RunMode, SavedArtifact
from waypoint.models.session import WizardState
from waypoint.persistence.artifact_store import ArtifactStore
from waypoint.persistence.session_store import WizardSessionStore
from waypoint.wizard import state as wizard
from waypoint.wizard.requirements import mandatory_fields

router = APIRouter(tags=["wizard"])


class SessionView(BaseModel):
    session_id: str
    selected_tests: list[str]
    plan_year: Optional[int]
    filename: str
    headers: list[str]
    row_count: int
    required_fields: list[str]
    mandatory_fields: list[str]
    missing_mandatory: list[str]
    column_map: dict[str, Optional[str]]
    auto_hce: bool
    auto_key: bool
    ready: bool
    next_route: Optional[str]


class TestsBody(BaseModel):
    tests: list[str] = Field(default_factory=list)


class ToggleBody(BaseModel):
    test: str


class PlanYearBody(BaseModel):
    plan_year: Optional[str | int] = None


class MappingBody(BaseModel):
    field: str
    column: Optional[str] = None


class DeriveBody(BaseModel):
    auto_hce: Optional[bool] = None
    auto_key: Optional[bool] = None


class SaveBody(BaseModel):
    name: str = "Combined_Tests"


def _view(session_id: str, state: WizardState) -> SessionView:
    required = wizard.required_fields(state)
    missing = wizard.missing_mandatory(state)
    return SessionView(
        session_id=session_id,
        selected_tests=state.selected_tests,
        plan_year=state.plan_year,
        filename=state.filename,
        headers=list(state.headers),
        row_count=state.table.row_count if state.table is not None else 0,
        required_fields=required,
        mandatory_fields=mandatory_fields(required),
        missing_mandatory=missing,
        column_map=state.column_map.fields,
        auto_hce=state.column_map.auto_hce,
        auto_key=state.column_map.auto_key,
        ready=bool(state.selected_tests and state.table is not None
                   and state.plan_year is not None and not missing),
        next_route=wizard.next_route(state),
    )


def _csv_response(body: str, filename: str) -> Response:
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/sessions", status_code=201)
def create_session(store: WizardSessionStore = Depends(get_session_store)) -> SessionView:
    session_id, state = store.create()
    return _view(session_id, state)


@router.get("/sessions/{session_id}")
def get_session(session_id: str, store: WizardSessionStore = Depends(get_session_store)) -> SessionView:
    return _view(session_id, store.load(session_id))


@router.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str, store: WizardSessionStore = Depends(get_session_store)) -> Response:
    store.delete(session_id)
    return Response(status_code=204)


@router.put("/sessions/{session_id}/tests")
def select_tests(
    session_id: str, body: TestsBody, store: WizardSessionStore = Depends(get_session_store)
) -> SessionView:
    state = wizard.select_tests(store.load(session_id), body.tests)
    store.save(session_id, state)
    return _view(session_id, state)


@router.post("/sessions/{session_id}/tests/toggle")
def toggle_test(
    session_id: str, body: ToggleBody, store: WizardSessionStore = Depends(get_session_store)
) -> SessionView:
    state = wizard.toggle_test(store.load(session_id), body.test)
    store.save(session_id, state)
    return _view(session_id, state)


@router.put("/sessions/{session_id}/plan-year")
def set_plan_year(
    session_id: str, body: PlanYearBody, store: WizardSessionStore = Depends(get_session_store)
) -> SessionView:
    state = wizard.set_plan_year(store.load(session_id), body.plan_year)
    store.save(session_id, state)
    return _view(session_id, state)


@router.post("/sessions/{session_id}/file")
def upload_file(
    session_id: str,
    file: UploadFile = File(...),
    store: WizardSessionStore = Depends(get_session_store),
) -> SessionView:
    contents = file.file.read()
    state = wizard.load_file(store.load(session_id), contents, file.filename or "")
    store.save(session_id, state)
    return _view(session_id, state)


@router.put("/sessions/{session_id}/mapping")
def map_field(
    session_id: str, body: MappingBody, store: WizardSessionStore = Depends(get_session_store)
) -> SessionView:
    state = wizard.map_field(store.load(session_id), body.field, body.column)
    store.save(session_id, state)
    return _view(session_id, state)


@router.put("/sessions/{session_id}/derive")
def set_derive_flags(
    session_id: str, body: DeriveBody, store: WizardSessionStore = Depends(get_session_store)
) -> SessionView:
    state = wizard.set_derive_flags(
        store.load(session_id), auto_hce=body.auto_hce, auto_key=body.auto_key
    )
    store.save(session_id, state)
    return _view(session_id, state)


@router.get("/sessions/{session_id}/rows")
def output_rows(
    session_id: str, store: WizardSessionStore = Depends(get_session_store)
) -> list[dict[str, Any]]:
    state = store.load(session_id)
    return [row.values for row in wizard.output_rows(state)]


@router.get("/sessions/{session_id}/download")
def download(session_id: str, store: WizardSessionStore = Depends(get_session_store)) -> Response:
    state = store.load(session_id)
    return _csv_response(wizard.mapped_csv(state), wizard.download_filename(state))


@router.get("/sessions/{session_id}/template")
def template(session_id: str, store: WizardSessionStore = Depends(get_session_store)) -> Response:
    state = store.load(session_id)
    return _csv_response(wizard.blank_template(state), "Combined_Tests_Template.csv")


def _run(state: WizardState, service: ICalculationService,
         credentials: BearerCredentialProvider, mode: RunMode) -> BatchRunResult:
    csv_text = wizard.mapped_csv(state)
    plan_year = state.plan_year
    if plan_year is None:
        raise InputValidationError("Please select a plan year.")
    batch = run_batch(
        service, state.selected_tests, csv_text.encode("utf-8"), plan_year, credentials, mode
    )
    return wizard.enrich_preview(state, batch)


@router.post("/sessions/{session_id}/preview")
def preview(
    session_id: str,
    store: WizardSessionStore = Depends(get_session_store),
    service: ICalculationService = Depends(get_calc_service),
    credentials: BearerCredentialProvider = Depends(get_credentials),
) -> BatchRunResult:
    return _run(store.load(session_id), service, credentials, RunMode.PREVIEW)


@router.post("/sessions/{session_id}/submit")
def submit(
    session_id: str,
    store: WizardSessionStore = Depends(get_session_store),
    service: ICalculationService = Depends(get_calc_service),
    credentials: BearerCredentialProvider = Depends(get_credentials),
) -> BatchRunResult:
    return _run(store.load(session_id), service, credentials, RunMode.UPLOAD)


@router.post("/sessions/{session_id}/save", status_code=201)
def save(
    session_id: str,
    body: SaveBody,
    store: WizardSessionStore = Depends(get_session_store),
    artifacts: ArtifactStore = Depends(get_artifact_store),
    service: ICalculationService = Depends(get_calc_service),
    credentials: BearerCredentialProvider = Depends(get_credentials),
) -> list[SavedArtifact]:
    """Run every selected test and store the mapped CSV with its results."""
    user_id = credentials.current_user()
    if user_id is None:
        raise AuthenticationError("User not authenticated.")
    state = store.load(session_id)
    batch = _run(state, service, credentials, RunMode.UPLOAD)
    return artifacts.save_run(user_id, body.name, wizard.mapped_csv(state), batch)


@router.get("/artifacts")
def list_artifacts(
    artifacts: ArtifactStore = Depends(get_artifact_store),
    credentials: BearerCredentialProvider = Depends(get_credentials),
) -> list[str]:
    """Paths of every artifact the signed-in user has saved."""
    user_id = credentials.current_user()
    if user_id is None:
        raise AuthenticationError("User not authenticated.")
    return artifacts.list_runs(user_id)
