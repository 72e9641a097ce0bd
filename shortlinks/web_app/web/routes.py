"""Public redirect route."""

from html import escape

from fastapi import APIRouter, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from shortlinks.lib.common.headers import click_source
from shortlinks.lib.resolver import Expired, NotFound, resolve

router = APIRouter()

NOT_FOUND_PAGE = "<h1>Short link not found</h1><p>No link exists for '{code}'.</p>"
EXPIRED_PAGE = "<h1>This short link has expired</h1><p>'{code}' expired at {expires_at}.</p>"


@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_destination(request: Request, short_code: str):
    """Redirect to the destination of a live short link."""
    registry = request.app.state.registry
    source = click_source(dict(request.headers))

    outcome = await resolve(registry, short_code, source, registry.clock())

    # The code comes straight from the path, so it is escaped before it reaches a page
    if isinstance(outcome, NotFound):
        return HTMLResponse(
            content=NOT_FOUND_PAGE.format(code=escape(short_code)),
            status_code=status.HTTP_404_NOT_FOUND,
        )

    if isinstance(outcome, Expired):
        return HTMLResponse(
            content=EXPIRED_PAGE.format(
                code=escape(short_code),
                expires_at=escape(outcome.expires_at.isoformat()),
            ),
            status_code=status.HTTP_410_GONE,
        )

    # 302 rather than 301 so browsers come back and every visit is counted
    return RedirectResponse(url=outcome.destination, status_code=status.HTTP_302_FOUND)
