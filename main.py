from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import List
import logging

import config
from errors import ConservationViolation, LedgerInputError
from models import LedgerSnapshot, ParticipantShare, SettlementResult, SplitRequest
from settlement_engine import SettlementEngine
from split_calculator import SplitCalculator

# Configure logging
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Settlement Engine API",
    description="Net balances and settle-up plans for shared group expenses",
    version="1.0.0"
)

# CORS middleware to allow frontend connections
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===== ERROR HANDLERS =====
@app.exception_handler(LedgerInputError)
async def ledger_input_error_handler(request: Request, exc: LedgerInputError):
    """Caller errors: actionable message, nothing computed"""
    logger.info(f"Rejected {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc), "error": type(exc).__name__})

@app.exception_handler(ConservationViolation)
async def conservation_violation_handler(request: Request, exc: ConservationViolation):
    """System fault: show the raw balances but withhold any plan"""
    logger.error(f"Conservation violation on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": str(exc),
            "error": type(exc).__name__,
            "balances": [b.model_dump(mode="json") for b in exc.balances],
            "plan": None,
        },
    )

# ===== API ENDPOINTS =====
@app.get("/")
async def root():
    return {"message": "Settlement Engine API"}

@app.get("/health")
async def health():
    return {"status": "ok", "currency": config.DEFAULT_CURRENCY}

@app.post("/splits/", response_model=List[ParticipantShare])
async def compute_split(split: SplitRequest):
    """Apportion one expense among its participants"""
    return SplitCalculator.compute_shares(
        split.amount,
        split.split_method,
        split.participants,
        split.params,
        expense_id=split.expense_id,
    )

@app.post("/settlements/", response_model=SettlementResult)
async def calculate_settlements(snapshot: LedgerSnapshot):
    """Calculate balances and the optimal settle-up plan for a ledger snapshot"""
    logger.info(
        f"Calculating settlements for group {snapshot.group_id}: "
        f"{len(snapshot.expenses)} expenses, {len(snapshot.shares)} shares, {len(snapshot.transfers)} transfers"
    )
    return SettlementEngine.calculate_settlements(snapshot)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
