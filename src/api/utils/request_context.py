from fastapi import Request

from src.app.services.audit_logger import RequestContext


async def get_request_context(request: Request) -> RequestContext:
    """
    Dependency that captures the transport details the audit trail needs.

    The body is parsed as JSON when possible; it is redacted by the audit
    logger before storage.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None

    url = request.url.path
    if request.url.query:
        url = f"{url}?{request.url.query}"

    return RequestContext(
        headers=dict(request.headers),
        remote_addr=request.client.host if request.client else None,
        method=request.method,
        url=url,
        body=body,
    )
