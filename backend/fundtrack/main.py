from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fundtrack.core.config import settings
from fundtrack.core.errors import FundTrackError
from fundtrack.core.log import setup_logging
from fundtrack.api.routes.auth import router as auth_router
from fundtrack.api.routes.stocks import router as stocks_router
from fundtrack.api.routes.entries import router as entries_router

setup_logging(settings.log_level)

app = FastAPI(title="Fund Tracker")

origins = [o.strip() for o in (settings.cors_origins or "").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(FundTrackError)
async def _fundtrack_error(request: Request, exc: FundTrackError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())

@app.exception_handler(RequestValidationError)
async def _request_invalid(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg")}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "validation_error", "errors": errors})

@app.get("/")
def root():
    return {"message": "Fund tracker API running"}

@app.get("/health")
@app.get("/api/health")
def health():
    return {"status": "ok"}

app.include_router(auth_router)
app.include_router(stocks_router)
app.include_router(entries_router)
