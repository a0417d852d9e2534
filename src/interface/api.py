from __future__ import annotations

import uuid
from typing import Any

from fastapi import Body, FastAPI, HTTPException
from fastapi.responses import HTMLResponse

from application.tool_executor import ToolExecutor
from application.transfers import TransferError
from domain.schemas import (
    BulkImportResult,
    DashboardRequest,
    DashboardResponse,
    FinancialSettings,
    ToolContext,
    ToolRequest,
    ToolResponse,
    TransferBulkRequest,
    TransferCreate,
)
from interface.cli import build_engine, build_settings_store, build_transfer_service
from tools.registry import registry

app = FastAPI(title="Budgetcast API")
engine = build_engine()
executor = ToolExecutor(registry)
settings_store = build_settings_store()


def _transfer_service():
    service = build_transfer_service()
    if service is None:
        raise HTTPException(status_code=503, detail="No transfer store configured")
    return service


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return """
<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <title>Budgetcast</title>
    <style>
      body { font-family: sans-serif; margin: 2rem; max-width: 900px; }
      form { display: flex; gap: .75rem; align-items: end; }
      input, select, button { font: inherit; padding: .6rem; }
      pre { background: #111; color: #eee; padding: 1rem; overflow: auto; border-radius: 8px; }
    </style>
  </head>
  <body>
    <h1>Budgetcast</h1>
    <p>Minimal test UI for <code>/dashboard</code>.</p>
    <form id="dashboard-form">
      <label>User <input name="user_id" value="u_123" /></label>
      <label>Role
        <select name="role"><option>primary</option><option>secondary</option></select>
      </label>
      <button type="submit">Forecast</button>
    </form>
    <pre id="result">Submit a request.</pre>
    <script>
      const form = document.getElementById('dashboard-form');
      const result = document.getElementById('result');
      form.addEventListener('submit', async (e) => {
        e.preventDefault();
        const payload = {request_id: 'req_web_' + Date.now(), user_id: form.user_id.value, role: form.role.value};
        result.textContent = "Loading...";
        try {
          const res = await fetch('/dashboard', {
            method: 'POST',
            headers: { 'Content-Type': 'application/json' },
            body: JSON.stringify(payload)
          });
          result.textContent = JSON.stringify(await res.json(), null, 2);
        } catch (err) {
          result.textContent = String(err);
        }
      });
    </script>
  </body>
</html>
"""


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/tools")
def list_tools() -> list[dict[str, Any]]:
    return [{"name": s.name, "description": s.description, "args_schema": s.args_schema} for s in registry.list_specs()]


@app.post("/tools/{name}")
def run_tool(name: str, context: ToolContext, args: dict[str, Any] = Body(default={})) -> ToolResponse:
    if not registry.has_tool(name):
        raise HTTPException(status_code=404, detail=f"Tool not registered: {name}")
    request = ToolRequest(request_id=f"req_api_{uuid.uuid4().hex[:12]}", tool=name, args=args, context=context)
    return executor.run(request)


@app.post("/dashboard")
def dashboard(request: DashboardRequest) -> dict[str, Any]:
    response: DashboardResponse = engine.run(request)
    return response.model_dump(by_alias=True)


@app.post("/transfers")
def create_transfer(payload: TransferCreate) -> dict[str, Any]:
    try:
        transfer = _transfer_service().create_transfer(payload)
    except TransferError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"id": transfer.id, "month": transfer.month, "amount": transfer.amount, "description": transfer.description}


@app.post("/transfers/bulk")
def create_transfers_bulk(payload: TransferBulkRequest) -> BulkImportResult:
    try:
        return _transfer_service().create_transfers_bulk(payload.user_id, payload.rows)
    except TransferError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.delete("/transfers/{transfer_id}")
def delete_transfer(transfer_id: str) -> dict[str, str]:
    try:
        _transfer_service().delete_transfer(transfer_id)
    except TransferError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return {"status": "deleted", "id": transfer_id}


@app.get("/settings/{user_id}")
def get_settings(user_id: str) -> FinancialSettings:
    return settings_store.fetch_settings(user_id)


@app.put("/settings/{user_id}")
def put_settings(user_id: str, updates: dict[str, Any]) -> FinancialSettings:
    try:
        return settings_store.upsert_settings(user_id, updates)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
