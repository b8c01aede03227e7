"""Proxy-aware client address extraction."""

from fastapi import Request


def get_client_ip(request: Request) -> str:
    """Resolve the caller's address.

    X-Forwarded-For wins when present: its leftmost entry, or its rightmost
    entry when the request carries ``?reverseProxy=true``. Then X-Real-Ip,
    then the socket peer.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ips = [ip.strip() for ip in forwarded_for.split(",")]
        use_reverse_proxy = request.query_params.get("reverseProxy") == "true"
        return ips[-1] if use_reverse_proxy else ips[0]

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client is not None:
        return request.client.host
    return ""
