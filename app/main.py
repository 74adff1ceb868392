import logging
from functools import lru_cache

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from github_owners import GitHubOwnersInterceptor, InterceptorRequest, Verdict, github_host_factory

from . import config
from .logging_config import audit_log, configure_logging, set_request_id
from .models import InterceptorRequestModel, InterceptorResponseModel

configure_logging(level=config.LOG_LEVEL, json_format=config.LOG_JSON, log_file=config.LOG_FILE or None)
logger = logging.getLogger(__name__)

app = FastAPI(title="GitHub Owners Interceptor")


@lru_cache(maxsize=1)
def get_interceptor() -> GitHubOwnersInterceptor:
    # Holds configuration only; hosts are built inside each process() call.
    return GitHubOwnersInterceptor(
        secret_store=config.build_secret_store(),
        host_factory=github_host_factory(config.GITHUB_API_URL, config.GITHUB_REQUEST_TIMEOUT),
        evaluation_timeout=config.EVALUATION_TIMEOUT,
    )


def to_interceptor_request(req: InterceptorRequestModel) -> InterceptorRequest:
    return InterceptorRequest(
        body=req.body,
        header=req.header,
        extensions=req.extensions,
        interceptor_params=req.interceptor_params,
        event_url=req.context.event_url,
        event_id=req.context.event_id,
        trigger_id=req.context.trigger_id,
    )


def audit_verdict(verdict: Verdict) -> None:
    if verdict.failed():
        audit_log.evaluation_failed(verdict.code.name, verdict.message, verdict.trail)
        return
    ctx = verdict.context
    result = verdict.authorization
    audit_log.authorization_decision(
        repository=ctx.full_name,
        pr_number=ctx.pr_number,
        sender=ctx.sender,
        decision="ALLOW" if verdict.allowed() else "DENY",
        granted_by=result.granted_by if result else None,
        trail=verdict.trail,
    )


@app.exception_handler(RequestValidationError)
async def invalid_request(request, exc: RequestValidationError):
    errors = [f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg', '')}" for e in exc.errors()]
    logger.warning("Rejected malformed interceptor request: %s", errors)
    return JSONResponse(status_code=400, content={"detail": "invalid interceptor request", "errors": errors})


@app.get("/ready")
def ready():
    checks = config.validate_config()
    failed = sorted(name for name, ok in checks.items() if not ok)
    if failed:
        logger.warning("Not ready, failed checks: %s", failed)
        return JSONResponse(status_code=503, content={"status": "not ready", "failed": failed, "checks": checks})
    return {"status": "ok", "checks": checks}


@app.post("/", response_model=InterceptorResponseModel, response_model_exclude_none=True)
def intercept(req: InterceptorRequestModel, interceptor: GitHubOwnersInterceptor = Depends(get_interceptor)):
    set_request_id(req.context.event_id)
    request = to_interceptor_request(req)
    audit_log.event_received(request.event_type, request.trigger_id, request.enterprise_host)

    verdict = interceptor.process(request)
    audit_verdict(verdict)
    # The verdict travels in the body; HTTP status stays 200.
    return verdict.to_response()
