from flask import request


def client_ip() -> str:
    cf_ip = request.headers.get("CF-Connecting-IP")
    if cf_ip:
        return cf_ip.strip()

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # first hop is the original client
        return forwarded.split(",")[0].strip()

    return request.remote_addr or "unknown"
