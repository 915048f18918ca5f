from __future__ import annotations

from flask import current_app, request


def int_query_arg(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    maximum: int | None = None,
) -> int:
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if minimum is not None and value < minimum:
        return minimum
    if maximum is not None and value > maximum:
        return maximum
    return value


def pagination_args() -> tuple[int, int]:
    page = int_query_arg("page", 1, minimum=1)
    page_size = int_query_arg(
        "page_size",
        current_app.config.get("DEFAULT_PAGE_SIZE", 10),
        minimum=1,
        maximum=current_app.config.get("MAX_PAGE_SIZE", 100),
    )
    return page, page_size


def bool_query_arg(name: str) -> bool:
    return (request.args.get(name) or "").strip().lower() in {"1", "true", "yes"}


def json_payload() -> dict[str, object]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}
