"""
API routes - combined router from all domain modules.

Shared infrastructure (limiter, listing helpers) lives here; every
sub-router imports what it needs from this package.
"""

import os

from fastapi import APIRouter
from slowapi import Limiter
from slowapi.util import get_remote_address

# ---------------------------------------------------------------------------
# Shared rate limiter
# ---------------------------------------------------------------------------
IS_TEST_ENV = os.getenv("ENV", "").lower() == "test"
if IS_TEST_ENV:
    limiter = Limiter(key_func=get_remote_address)

    def no_op_limit(*args, **kwargs):
        """No-op decorator for test mode - doesn't apply any rate limiting."""
        def decorator(func):
            return func
        return decorator

    limiter.limit = lambda *args, **kwargs: no_op_limit()
else:
    limiter = Limiter(key_func=get_remote_address)

# ---------------------------------------------------------------------------
# Shared constants
# ---------------------------------------------------------------------------
AUTH_RATE_LIMIT = "10/minute"
MAX_PAGE_SIZE = 100


def date_range(after=None, before=None):
    """Range filter for QueryParams; None when neither bound is given."""
    if after is None and before is None:
        return None
    return {"gte": after, "lte": before}


# ---------------------------------------------------------------------------
# Import sub-routers and combine
# ---------------------------------------------------------------------------
from golfcompete.api.routes.series import router as series_router  # noqa: E402
from golfcompete.api.routes.events import router as events_router  # noqa: E402
from golfcompete.api.routes.rounds import router as rounds_router  # noqa: E402
from golfcompete.api.routes.bags import router as bags_router  # noqa: E402
from golfcompete.api.routes.courses import router as courses_router  # noqa: E402
from golfcompete.api.routes.notes import router as notes_router  # noqa: E402
from golfcompete.api.routes.users import router as users_router  # noqa: E402
from golfcompete.api.routes.auth import router as auth_router  # noqa: E402

router = APIRouter()
router.include_router(series_router)
router.include_router(events_router)
router.include_router(rounds_router)
router.include_router(bags_router)
router.include_router(courses_router)
router.include_router(notes_router)
router.include_router(users_router)
router.include_router(auth_router)
