from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from backend.health import service as health_service
from backend.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request):
    state = request.app.state
    return {
        "ok": True,
        "services": {
            name: getattr(state, name, None) is not None
            for name in ("mailer", "payment_service", "stripe_gateway", "catalog")
        },
    }

@router.get("/supabase")
def health_supabase():
    info = health_service.health_supabase_info()
    return JSONResponse(info, status_code=200 if info.get("connect_ok") else 503)

@router.get("/rate-limit")
def health_rate_limit(request: Request):
    return rate_limit_health_info(request)
