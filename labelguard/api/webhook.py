"""
Validating admission webhook server.

Receives `AdmissionReview` requests from the Kubernetes API server over HTTPS and answers
each one with an allow/deny verdict for the protected-label policy.
"""

from __future__ import annotations

import logging
import ssl
import time
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.requests import ClientDisconnect

from labelguard.api.review import EnvelopeDecoder, ReviewAdapter
from labelguard.authz.policy import PolicyConfig, load_policy_config
from labelguard.config import ServerConfig
from labelguard.core.errors import TransportError

logger = logging.getLogger(__name__)

EXPECTED_CONTENT_TYPE = "application/json"


def check_content_type(content_type: Optional[str]) -> None:
    """
    Require an `application/json` request body.

    Deliberately looser than an exact header comparison: media type parameters (such as
    `; charset=utf-8`) are ignored and the media type is compared case-insensitively.
    """
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type != EXPECTED_CONTENT_TYPE:
        raise TransportError(f"contentType={content_type or ''}, expect {EXPECTED_CONTENT_TYPE}")


def create_app(policy: PolicyConfig, *, decoder: Optional[EnvelopeDecoder] = None) -> FastAPI:
    """
    Build the webhook app around an immutable policy.

    The policy is captured here once; handlers only read it.
    """
    adapter = ReviewAdapter(policy, decoder=decoder)
    app = FastAPI(title="labelguard admission webhook")
    app.state.policy = policy
    app.state.review_adapter = adapter

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all incoming HTTP requests."""
        start_time = time.time()
        logger.debug("%s %s", request.method, request.url.path)
        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
            return response
        except Exception as e:
            process_time = time.time() - start_time
            logger.exception("%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e))
            raise

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"ok": True}

    async def review(request: Request) -> Response:
        try:
            check_content_type(request.headers.get("content-type"))
            try:
                body = await request.body()
            except ClientDisconnect as e:
                raise TransportError("client disconnected before the request body was read") from e
        except TransportError as e:
            # No verdict is produced; the API server treats this as a webhook failure.
            client_host = request.client.host if request.client else "unknown"
            logger.warning("Rejecting review request from %s: %s", client_host, e)
            return JSONResponse(status_code=415, content={"detail": str(e)})

        return Response(content=adapter.review(body), media_type=EXPECTED_CONTENT_TYPE)

    app.add_api_route("/", review, methods=["POST"])
    app.add_api_route("/validate", review, methods=["POST"])
    return app


def app_from_env() -> FastAPI:
    """App factory for `uvicorn --factory labelguard.api.webhook:app_from_env`."""
    return create_app(load_policy_config())


def load_tls_context(cert_file: Optional[str], key_file: Optional[str]) -> ssl.SSLContext:
    """
    Load the serving certificate and key.

    Raises OSError (ssl.SSLError included) when the pair is missing or unusable; callers
    treat that as fatal since the webhook must not serve without TLS.
    """
    if not cert_file or not key_file:
        raise FileNotFoundError("both a TLS certificate file and a TLS key file are required")
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    ctx.load_cert_chain(certfile=cert_file, keyfile=key_file)
    return ctx


def run(server: ServerConfig, policy: PolicyConfig) -> None:
    import uvicorn

    # Configure logging for the application
    log_level = (server.log_level or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("labelguard").setLevel(getattr(logging, log_level, logging.INFO))

    # Fail before binding if the certificate pair is unusable.
    load_tls_context(server.tls_cert_file, server.tls_key_file)

    # Map Python logging levels to uvicorn log levels
    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    if policy.enabled:
        logger.info(
            "Protecting label %r; %d user(s) allowed to set it: %s",
            policy.protected_label,
            len(policy.allowed_users),
            ", ".join(sorted(policy.allowed_users)) or "<none>",
        )
    else:
        logger.warning("No protected label configured; the protected-label policy is disabled")

    logger.info("Starting admission webhook on %s:%d (log_level=%s)", server.host, server.port, log_level)
    uvicorn.run(
        create_app(policy),
        host=server.host,
        port=server.port,
        log_level=uvicorn_log_level,
        ssl_certfile=server.tls_cert_file,
        ssl_keyfile=server.tls_key_file,
    )
