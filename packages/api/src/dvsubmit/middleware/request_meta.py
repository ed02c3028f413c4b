# This project was developed with assistance from AI tools.
"""Request fingerprint dependency for audit rows."""

from typing import Annotated

from fastapi import Depends, Request

from ..schemas.audit import RequestMeta


def get_request_meta(request: Request) -> RequestMeta:
    """Client IP (first ``x-forwarded-for`` hop, else the socket peer) and user agent."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    else:
        ip = request.headers.get("x-real-ip") or (request.client.host if request.client else None)
    return RequestMeta(ip_address=ip, user_agent=request.headers.get("user-agent"))


Meta = Annotated[RequestMeta, Depends(get_request_meta)]
