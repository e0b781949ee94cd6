from fastapi import Request

NOTICE_KEY = "_notices"
# Oldest notices are dropped past this so the session cookie stays small
MAX_NOTICES = 20


def flash(request: Request, message: str, category: str = "info") -> None:
    """Queues a toast-style notice for the browser's next poll of /notices."""
    notices = request.session.get(NOTICE_KEY, [])
    notices.append({"category": category, "message": message})
    request.session[NOTICE_KEY] = notices[-MAX_NOTICES:]


def pop_notices(request: Request) -> list[dict]:
    return request.session.pop(NOTICE_KEY, [])
