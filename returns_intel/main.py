import logging
from datetime import date
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, Body, Depends, FastAPI, Query
from fastapi.responses import HTMLResponse, JSONResponse

from .config import Settings, configure_logging, get_settings
from .forwarder import WebhookForwarder, is_configured_url
from .geo import aggregate_by_location, count_high_risk_locations, fallback_risk_data
from .mapper import UNKNOWN, filter_records, map_judgments
from .report import build_report_content, pdf_response
from .schemas import (
    DashboardSummary,
    MerchantConfig,
    ReturnsResponse,
    RiskMapResponse,
    SimulateReturnRequest,
    SimulateReturnResponse,
)
from .scoring import summarize
from .simulate import build_return_event, enrich_event
from .store import ConfigStore, ConfigStoreError
from .upstream import WorkflowClient, load_judgments

configure_logging(get_settings())
logger = logging.getLogger(__name__)

app = FastAPI(title="Returns Intelligence")


# ---------------------------
# Injected capabilities
# ---------------------------

@lru_cache
def _config_store(path: str) -> ConfigStore:
    return ConfigStore(path)


def get_config_store(settings: Settings = Depends(get_settings)) -> ConfigStore:
    return _config_store(settings.config_db_path)


def get_workflow_client(settings: Settings = Depends(get_settings)) -> WorkflowClient:
    return WorkflowClient(settings.workflow_url, timeout_seconds=settings.workflow_timeout_seconds)


def get_forwarder(settings: Settings = Depends(get_settings)) -> WebhookForwarder:
    return WebhookForwarder(timeout_seconds=settings.forward_timeout_seconds)


def _store_error(e: Exception) -> JSONResponse:
    logger.error("Config store error: %s", e)
    return JSONResponse({"success": False, "error": str(e)}, status_code=500)


def _forward_url(config: MerchantConfig, settings: Settings) -> str:
    return config.boltic_url.strip() or settings.default_forward_url.strip()


# ---------------------------
# API: Dashboard
# ---------------------------

@app.get("/api/returns", response_model=ReturnsResponse)
async def returns_dashboard(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    risk: Optional[str] = Query(None),
    client: WorkflowClient = Depends(get_workflow_client),
):
    normalized, error = await load_judgments(client)
    if error:
        return ReturnsResponse(summary=DashboardSummary(), returns=[], error=error)

    records = map_judgments(normalized.raw_judgments)
    summary = summarize(records, normalized.summary, raw_count=len(normalized.raw_judgments))

    return ReturnsResponse(
        summary=summary,
        returns=filter_records(records, search=search, status=status, risk=risk),
        total_returns=len(records),
        metadata=normalized.metadata,
    )


# ---------------------------
# API: Risk map
# ---------------------------

@app.get("/api/risk-map-data", response_model=RiskMapResponse)
async def risk_map_data(client: WorkflowClient = Depends(get_workflow_client)):
    normalized, error = await load_judgments(client)
    if error:
        data = fallback_risk_data()
        return RiskMapResponse(
            data=data,
            total_states=len(data),
            total_high_risk_locations=count_high_risk_locations(data),
            fallback=True,
        )

    records = map_judgments(normalized.raw_judgments, fallback_pincode=UNKNOWN)
    data = aggregate_by_location(records)
    return RiskMapResponse(
        data=data,
        total_states=len(data),
        total_high_risk_locations=count_high_risk_locations(data),
    )


# ---------------------------
# API: PDF report
# ---------------------------

@app.get("/api/generate-report")
async def generate_report(client: WorkflowClient = Depends(get_workflow_client)):
    logger.info("Generating PDF report")
    normalized, _error = await load_judgments(client)

    records = map_judgments(normalized.raw_judgments)
    summary = summarize(records, normalized.summary, raw_count=len(normalized.raw_judgments))
    content = build_report_content(records, summary)

    try:
        response = pdf_response(content, f"returns-report-{date.today().isoformat()}.pdf")
    except Exception:
        logger.exception("PDF generation error")
        return JSONResponse({"success": False, "error": "Failed to generate report"}, status_code=500)

    logger.info("PDF report generated (%d rows)", len(records))
    return response


# ---------------------------
# API: Merchant config
# ---------------------------

@app.get("/api/config/{merchant_id}", response_model=MerchantConfig)
def read_config(merchant_id: str, store: ConfigStore = Depends(get_config_store)):
    try:
        return store.get_config(merchant_id)
    except ConfigStoreError as e:
        return _store_error(e)


@app.post("/api/config/{merchant_id}")
def save_config(merchant_id: str, config: MerchantConfig, store: ConfigStore = Depends(get_config_store)):
    try:
        store.set_config(merchant_id, config)
    except ConfigStoreError as e:
        return _store_error(e)
    return {"success": True, "message": "Configuration saved"}


# ---------------------------
# API: Return events
# ---------------------------

@app.post("/api/simulate-return", response_model=SimulateReturnResponse, response_model_exclude_none=True)
def simulate_return(
    background: BackgroundTasks,
    req: Optional[SimulateReturnRequest] = None,
    store: ConfigStore = Depends(get_config_store),
    forwarder: WebhookForwarder = Depends(get_forwarder),
    settings: Settings = Depends(get_settings),
):
    req = req or SimulateReturnRequest()
    event = build_return_event(req.scenario, req.company_id, req.reason, req.comments)

    try:
        config = store.get_config(req.company_id)
    except ConfigStoreError as e:
        return _store_error(e)

    url = _forward_url(config, settings)
    if not is_configured_url(url):
        return SimulateReturnResponse(
            success=True,
            message="Return request simulated successfully (demo mode)",
            payload=event,
            demo_mode=True,
        )

    background.add_task(forwarder.forward, url, enrich_event(event, config.rules))
    return SimulateReturnResponse(
        success=True,
        message="Return request received and is being processed",
        payload=event,
        note="Processing may take a moment",
    )


@app.post("/api/webhook-events")
def webhook_events(
    background: BackgroundTasks,
    body: Dict[str, Any] = Body(...),
    store: ConfigStore = Depends(get_config_store),
    forwarder: WebhookForwarder = Depends(get_forwarder),
    settings: Settings = Depends(get_settings),
):
    event_name = body.get("event") or body.get("event_name")
    company_id = str(body.get("company_id", ""))
    logger.info("Webhook event %s received from company %s", event_name, company_id)

    if event_name != "return.requested":
        return {"success": True}

    try:
        config = store.get_config(company_id)
    except ConfigStoreError as e:
        return _store_error(e)

    url = _forward_url(config, settings)
    if not is_configured_url(url):
        logger.warning("No forwarding URL configured for company %s", company_id)
        return {"success": True, "warning": "No Boltic URL"}

    background.add_task(forwarder.forward, url, enrich_event(body, config.rules))
    return {"success": True}


@app.get("/api/health")
def health():
    return {"status": "healthy", "service": "Returns Intelligence"}


# ---------------------------
# HTML: Home
# ---------------------------

@app.get("/")
def home():
    return HTMLResponse("""
<!doctype html>
<html>
<head>
  <title>Returns Intelligence</title>
  <style>
    body { font-family: Helvetica, Arial, sans-serif; background: #f8fafc; color: #1f2937; margin: 0; }
    main { max-width: 520px; margin: 48px auto; }
    h1 { color: #6366f1; margin-bottom: 4px; }
    ul { list-style: none; padding: 0; }
    li a { display: block; padding: 10px 14px; margin: 8px 0; border: 1px solid #e2e8f0; border-radius: 8px; color: #1f2937; text-decoration: none; }
    li a:hover { border-color: #6366f1; }
    p { color: #6b7280; }
  </style>
</head>
<body>
  <main>
    <h1>Returns Intelligence</h1>
    <p>Return and fraud judgments for your store</p>
    <ul>
      <li><a href="/api/returns">Dashboard data (JSON)</a></li>
      <li><a href="/api/risk-map-data">Risk map data (JSON)</a></li>
      <li><a href="/api/generate-report">Download PDF report</a></li>
      <li><a href="/docs">API docs</a></li>
    </ul>
  </main>
</body>
</html>
""")
