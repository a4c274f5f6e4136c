# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def require_auth(f):
    """
    Require a bearer token and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.account: the authenticated Account
    - g.owner_id: the owner id every billing operation is scoped to

    Returns 401 if the header is missing, the token is unknown, revoked or
    expired, or the account is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        context = session_service.validate_token(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.account = context.account
        g.owner_id = context.owner_id

        return f(*args, **kwargs)

    return decorated_function
