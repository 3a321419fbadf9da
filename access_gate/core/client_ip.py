"""
Client identification shared by the middleware and the endpoints.
"""

from starlette.requests import Request

UNKNOWN_CLIENT = "unknown"


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request.

    Order of precedence:
    - CF-Connecting-IP (set by the Cloudflare edge)
    - X-Forwarded-For (first entry, set by proxies/load balancers)
    - The socket peer address
    """
    connecting_ip = request.headers.get("CF-Connecting-IP")
    if connecting_ip and connecting_ip.strip():
        return connecting_ip.strip()

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    return request.client.host if request.client else UNKNOWN_CLIENT
