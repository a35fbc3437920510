"""
TagCheck API - FastAPI backend for validating edits to a tagged feature graph.

Run with: uvicorn main:app --reload
"""

import io
import logging
import re
import uuid
from datetime import datetime, timedelta
from typing import Dict, Any, Optional, List
from contextlib import asynccontextmanager
from urllib.parse import quote

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
import pandas as pd

from tagcheck import (
    create_default_registry,
    Category,
    EntityGraph,
    GraphPayloadError,
    ReferenceDataError,
    ValidationContext,
    ValidationEngine,
    ValidationResult,
    __version__,
)
from tagcheck.config import load_settings
from tagcheck.log import configure_logging


settings = load_settings()
configure_logging(settings.log_level, settings.log_json)
logger = logging.getLogger("tagcheck.api")

# Session storage (in-memory, no persistence)
sessions: Dict[str, "SessionData"] = {}
SESSION_TIMEOUT_MINUTES = settings.session_timeout_minutes


class SessionData:
    """In-memory session data, cleared on timeout."""

    def __init__(self, base: EntityGraph, head: EntityGraph, name: str):
        self.base = base
        self.head = head
        self.name = name
        self.result: Optional[ValidationResult] = None
        self.created_at = datetime.now()
        self.expires_at = datetime.now() + timedelta(minutes=SESSION_TIMEOUT_MINUTES)

    def is_expired(self) -> bool:
        return datetime.now() > self.expires_at

    def cleanup(self):
        """Explicitly clear data from memory."""
        self.base = None
        self.head = None
        self.result = None


def cleanup_expired_sessions():
    """Remove expired sessions."""
    expired = [sid for sid, data in sessions.items() if data.is_expired()]
    for sid in expired:
        if sid in sessions:
            sessions[sid].cleanup()
            del sessions[sid]
            logger.info("Session %s expired", sid)


# Initialize validation engine
context = ValidationContext()
registry = create_default_registry(context)
engine = ValidationEngine(registry, context.reference)

context.reference.on_loaded(
    lambda dataset: logger.info("Reference data '%s' loaded; re-run validation to use it", dataset.value)
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("TagCheck API starting...")
    if settings.data_dir:
        try:
            status = context.reference.load_directory(settings.data_dir)
            logger.info("Reference data from %s: %s", settings.data_dir, status)
        except ReferenceDataError:
            logger.exception("Could not load reference data from %s", settings.data_dir)
    yield
    # Shutdown - cleanup all sessions
    logger.info("Cleaning up sessions...")
    for data in sessions.values():
        data.cleanup()
    sessions.clear()


# Initialize FastAPI app
app = FastAPI(
    title="TagCheck API",
    description="Data-quality validation for edits to tagged nodes, ways and relations",
    version=__version__,
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials="*" not in settings.allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models for API
class GraphUpload(BaseModel):
    head: Dict[str, Any]
    base: Dict[str, Any] = {}
    name: str = "edit"


class ValidationConfig(BaseModel):
    rule_ids: Optional[List[str]] = None
    entity_ids: Optional[List[str]] = None  # None = created + modified


class UploadResponse(BaseModel):
    session_id: str
    entity_count: int
    created: List[str]
    modified: List[str]
    deleted: List[str]
    expires_in_minutes: int


class NsiUpload(BaseModel):
    data: Dict[str, Any]
    generics: Dict[str, Any] = {}
    trees: Dict[str, Any] = {}


def get_session(session_id: str) -> SessionData:
    cleanup_expired_sessions()
    if session_id not in sessions:
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return sessions[session_id]


def report_disposition(name: str) -> str:
    """Attachment header for the report; the plain filename is ASCII only."""
    filename = f"{name}_probleme.xlsx"
    fallback = re.sub(r"[^A-Za-z0-9._-]", "_", filename)
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "TagCheck API", "version": __version__}


@app.get("/api/rules")
async def get_rules():
    """Get documentation for all validation rules."""
    cleanup_expired_sessions()
    return {"rules": registry.get_documentation()}


@app.get("/api/rules/{category}")
async def get_rules_by_category(category: str):
    """Get rules by category."""
    try:
        cat = Category(category)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid category: {category}")
    rules = registry.get_rules_by_category(cat)
    return {"rules": [r.metadata.to_dict() for r in rules]}


@app.get("/api/reference-data")
async def get_reference_status():
    """Which reference datasets are loaded. Rules depending on a missing one report nothing."""
    return {"loaded": context.reference.status}


@app.post("/api/reference-data/deprecated")
async def load_deprecated(rules: List[Dict[str, Any]]):
    """Load the deprecated-tag rules."""
    try:
        context.reference.load_deprecated(rules)
    except ReferenceDataError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok", "loaded": context.reference.status}


@app.post("/api/reference-data/nsi")
async def load_nsi(upload: NsiUpload):
    """Load the name-suggestion index."""
    try:
        context.reference.load_nsi(upload.data, upload.generics, upload.trees)
    except ReferenceDataError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "ok", "loaded": context.reference.status}


@app.post("/api/graph", response_model=UploadResponse)
async def upload_graph(upload: GraphUpload):
    """
    Upload the entities before and after an edit.

    Returns session ID and the changeset that validation will cover.
    """
    cleanup_expired_sessions()

    try:
        base = EntityGraph.from_dict(upload.base)
        head = EntityGraph.from_dict(upload.head)
    except GraphPayloadError as e:
        raise HTTPException(status_code=400, detail=f"Error reading entities: {e}")

    if len(head) == 0:
        raise HTTPException(status_code=400, detail="Graph is empty")

    changes = head.diff(base)

    # Create session (store snapshots temporarily)
    session_id = str(uuid.uuid4())
    sessions[session_id] = SessionData(base, head, upload.name)
    logger.info("Session %s created with %d entities", session_id, len(head))

    return UploadResponse(
        session_id=session_id,
        entity_count=len(head),
        **changes.to_dict(),
        expires_in_minutes=SESSION_TIMEOUT_MINUTES,
    )


@app.post("/api/validate/{session_id}")
async def validate_graph(session_id: str, config: Optional[ValidationConfig] = None):
    """
    Run validation on the uploaded edit.

    Returns all issues; copies sharing an id are listed once per reporting
    entity, the counts are per unique id.
    """
    session = get_session(session_id)
    config = config or ValidationConfig()
    rule_ids = config.rule_ids or settings.rule_ids

    if config.entity_ids is not None:
        result = engine.validate(config.entity_ids, session.head, rule_ids)
    else:
        result = engine.validate_changes(session.base, session.head, rule_ids)

    # Store result in session for later download
    session.result = result
    return result.to_dict()


@app.get("/api/session/{session_id}/download/report")
async def download_report(session_id: str):
    """
    Download validation issue report as Excel.
    """
    session = get_session(session_id)
    result = session.result

    if result is None:
        raise HTTPException(status_code=400, detail="No validation results. Run validation first.")

    # Create Excel report
    output = io.BytesIO()

    with pd.ExcelWriter(output, engine='openpyxl') as writer:
        unique = result.unique_issues()
        summary_data = {
            'Metrik': ['Geprüfte Objekte', 'Probleme', 'Fehler', 'Warnungen', 'Betroffene Objekte'],
            'Wert': [
                result.total_entities,
                len(unique),
                sum(1 for i in unique if i.severity.value == 'error'),
                sum(1 for i in unique if i.severity.value == 'warning'),
                result.flagged_entities,
            ]
        }
        pd.DataFrame(summary_data).to_excel(writer, sheet_name='Zusammenfassung', index=False)

        if unique:
            issues_df = result.to_dataframe().rename(columns={
                'type': 'Typ',
                'subtype': 'Untertyp',
                'severity': 'Schweregrad',
                'entity_ids': 'Objekte',
                'message': 'Meldung',
                'fixes': 'Korrekturen',
            })
            issues_df = issues_df[['Typ', 'Untertyp', 'Schweregrad', 'Objekte', 'Meldung', 'Korrekturen']]
            issues_df.to_excel(writer, sheet_name='Probleme', index=False)

    output.seek(0)

    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={
            "Content-Disposition": report_disposition(session.name)
        }
    )


@app.delete("/api/session/{session_id}")
async def delete_session(session_id: str):
    """
    Explicitly delete a session and all associated data.
    """
    if session_id in sessions:
        sessions[session_id].cleanup()
        del sessions[session_id]

    return {"status": "ok", "message": "Session deleted"}


# ============================================================================
# Checkers (Workflow configurations)
# ============================================================================

CHECKERS = [
    {
        'id': 'geometry-checker',
        'name': 'Geometrie-Checker',
        'description': 'Prüft, ob Flächen-Tags auf offenen Wegen liegen und Multipolygone vollständige Rollen haben.',
        'category': 'GEOMETRIE',
        'rule_ids': ['R-GEOM-01', 'R-REL-01'],
    },
    {
        'id': 'tagging-checker',
        'name': 'Tagging-Checker',
        'description': 'Erkennt fehlende, unklare und veraltete Tags.',
        'category': 'TAGGING',
        'rule_ids': ['R-TAG-01', 'R-TAG-02'],
    },
    {
        'id': 'privacy-checker',
        'name': 'Datenschutz-Checker',
        'description': 'Findet private Kontaktdaten an Wohngebäuden.',
        'category': 'DATENSCHUTZ',
        'rule_ids': ['R-PRIV-01'],
    },
    {
        'id': 'naming-checker',
        'name': 'Namens-Checker',
        'description': 'Findet generische Namen und Namen, die im not:name-Tag ausgeschlossen sind.',
        'category': 'NAMEN',
        'rule_ids': ['R-NAME-01'],
    },
    {
        'id': 'full-checker',
        'name': 'Vollständiger Check',
        'description': 'Führt alle Prüfungen durch.',
        'category': 'QUALITÄTSSICHERUNG',
        'rule_ids': None,  # All rules
    },
]


@app.get("/api/checkers")
async def get_checkers():
    """Get all available checker configurations."""
    return {"checkers": CHECKERS}


@app.get("/api/checkers/{checker_id}")
async def get_checker(checker_id: str):
    """Get a specific checker configuration."""
    for checker in CHECKERS:
        if checker['id'] == checker_id:
            return checker
    raise HTTPException(status_code=404, detail=f"Checker not found: {checker_id}")


# ============================================================================
# Run server (development)
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
