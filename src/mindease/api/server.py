"""FastAPI server exposing the MindEase control surface."""
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..control import ControlSurface
from ..errors import MissingPermissionError, StorageError

# Global instance (will be set by main app)
control_surface: Optional[ControlSurface] = None

app = FastAPI(
    title="MindEase API",
    description="Control surface for app blocking and screen time reporting",
    version="1.0.0"
)

# The host shell runs as a local web view
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Pydantic models
class BlockAppRequest(BaseModel):
    app_id: str


class TokenRequest(BaseModel):
    token: Optional[str] = None


class BaseUrlRequest(BaseModel):
    url: Optional[str] = None


class UsageItem(BaseModel):
    package_id: str
    display_name: str
    total_foreground_ms: int
    last_used_at: int
    formatted: str


class PermissionsResponse(BaseModel):
    blocking: bool
    usage_access: bool


# Dependency
def get_control() -> ControlSurface:
    """Get the control surface."""
    if control_surface is None:
        raise HTTPException(status_code=503, detail="MindEase services not available")
    return control_surface


def _storage_failed(e: StorageError):
    return HTTPException(status_code=500, detail=f"Storage error: {e}")


# Health check
@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "online",
        "app": "MindEase API",
        "version": "1.0.0"
    }


# Permission endpoints
@app.get("/permissions", response_model=PermissionsResponse)
def get_permissions(control: ControlSurface = Depends(get_control)):
    return PermissionsResponse(
        blocking=control.has_blocking_permission(),
        usage_access=control.has_usage_access_permission(),
    )


@app.post("/permissions/blocking/open")
def open_blocking_settings(control: ControlSurface = Depends(get_control)):
    control.open_blocking_permission_settings()
    return {"status": "success"}


@app.post("/permissions/usage-access/open")
def open_usage_access_settings(control: ControlSurface = Depends(get_control)):
    control.open_usage_access_settings()
    return {"status": "success"}


# Usage endpoints
@app.get("/usage", response_model=List[UsageItem])
def get_usage(days_back: float = 7, control: ControlSurface = Depends(get_control)):
    """Per-app foreground time, most used first."""
    try:
        stats = control.get_usage_stats(days_back)
    except MissingPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return [UsageItem(**vars(stat)) for stat in stats]


# Block list endpoints
@app.get("/blocked")
def get_blocked(control: ControlSurface = Depends(get_control)):
    """Get all blocked apps."""
    try:
        return {"apps": sorted(control.get_blocked_apps())}
    except StorageError as e:
        raise _storage_failed(e)


@app.post("/blocked")
def block_app(request: BlockAppRequest, control: ControlSurface = Depends(get_control)):
    app_id = request.app_id.strip()
    if not app_id:
        raise HTTPException(status_code=400, detail="app_id must not be empty")
    try:
        control.block_app(app_id)
    except StorageError as e:
        raise _storage_failed(e)
    return {"status": "success", "app_id": app_id}


@app.delete("/blocked/{app_id}")
def unblock_app(app_id: str, control: ControlSurface = Depends(get_control)):
    try:
        control.unblock_app(app_id)
    except StorageError as e:
        raise _storage_failed(e)
    return {"status": "success", "app_id": app_id}


# Enforcement endpoints
@app.post("/enforcement/start")
def start_enforcement(control: ControlSurface = Depends(get_control)):
    try:
        control.start_enforcement()
    except MissingPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except StorageError as e:
        raise _storage_failed(e)
    return {"status": "success", "message": "Enforcement started"}


@app.post("/enforcement/stop")
def stop_enforcement(control: ControlSurface = Depends(get_control)):
    control.stop_enforcement()
    return {"status": "success", "message": "Enforcement stopped"}


@app.get("/enforcement/status")
def get_enforcement_status(control: ControlSurface = Depends(get_control)):
    try:
        return control.enforcement_status()
    except StorageError as e:
        raise _storage_failed(e)


# Credentials endpoints
@app.put("/credentials/token")
def set_token(request: TokenRequest, control: ControlSurface = Depends(get_control)):
    try:
        control.set_auth_token(request.token)
    except StorageError as e:
        raise _storage_failed(e)
    return {"status": "success"}


@app.put("/credentials/base-url")
def set_base_url(request: BaseUrlRequest, control: ControlSurface = Depends(get_control)):
    try:
        control.set_base_url(request.url)
    except StorageError as e:
        raise _storage_failed(e)
    return {"status": "success"}


# Reporting endpoints
@app.post("/reporting/start")
def start_reporting(control: ControlSurface = Depends(get_control)):
    control.start_usage_reporting()
    return {"status": "success", "message": "Usage reporting started"}


@app.post("/reporting/stop")
def stop_reporting(control: ControlSurface = Depends(get_control)):
    control.stop_usage_reporting()
    return {"status": "success", "message": "Usage reporting stopped"}


@app.get("/reporting/status")
def get_reporting_status(control: ControlSurface = Depends(get_control)):
    try:
        return control.reporting_status()
    except StorageError as e:
        raise _storage_failed(e)


def set_control(control: Optional[ControlSurface]):
    """Set global control surface instance."""
    global control_surface
    control_surface = control


def start(host: str = "127.0.0.1", port: int = 8765):
    """Start the API server."""
    import uvicorn
    uvicorn.run(app, host=host, port=port, log_level="info")
