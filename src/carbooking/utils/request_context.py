import json
from typing import Optional
from carbooking.models.users import Actor, ActorRole


def get_actor(event: dict) -> Optional[Actor]:
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    user_id = authorizer.get("user_id")
    role_raw = authorizer.get("role")
    if not user_id or not role_raw:
        return None
    try:
        role = ActorRole(role_raw.lower())
    except ValueError:
        return None
    return Actor(actor_id=user_id, role=role)


def get_path_param(event: dict, name: str) -> Optional[str]:
    return (event.get("pathParameters") or {}).get(name)


def get_json_body(event: dict) -> dict:
    """Parsed request body; an absent body is an empty object."""
    if not event.get("body"):
        return {}
    body = json.loads(event["body"])
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body
