"""
Status page and note actions

GET  /              render connectivity + recent notes (never non-200)
POST /create-table  create the notes table if missing
POST /add-note      insert one note from form field `content`
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from api.dependencies import get_db, get_settings, get_templates
from lib import notes as notes_repo
from lib.db import NOT_INITIALIZED, Database
from lib.logging import get_logger
from lib.models import PageView
from lib.prometheus_metrics import notes_created_total
from lib.settings import Settings

router = APIRouter(tags=["notes"])
logger = get_logger("pages")

# Action paths answer every method; anything but POST goes back to the page
ACTION_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def describe_error(e: Exception) -> str:
    """str(e), or the repr when the message is empty (bare TimeoutError())"""
    return str(e) or repr(e)


def back_to_index() -> RedirectResponse:
    return RedirectResponse(url="/", status_code=303)


def render_index(request: Request, templates: Jinja2Templates, page: PageView) -> HTMLResponse:
    """Render failures are logged only; the client gets an empty page"""
    try:
        return templates.TemplateResponse(request, "index.html", {"page": page})
    except Exception as e:
        logger.error(f"template error: {e!r}")
        return HTMLResponse("")


async def collect_page_data(conn, page: PageView):
    """Version and notes lookups are independent; neither failure aborts the page"""
    try:
        page.db_version = await notes_repo.fetch_server_version(conn) or ""
    except Exception as e:
        page.error = f"Version query failed: {describe_error(e)}"

    try:
        page.table_exists = await notes_repo.notes_table_exists(conn)
    except Exception as e:
        logger.warning(f"notes table lookup failed: {e!r}")
        return

    if page.table_exists:
        try:
            page.notes = await notes_repo.list_recent_notes(conn)
        except Exception as e:
            logger.warning(f"listing notes failed: {e!r}")


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    templates: Jinja2Templates = Depends(get_templates)
):
    page = PageView(
        environment=settings.environment,
        db_host=settings.db_host,
        db_name=settings.db_name,
        db_user=settings.db_user,
    )

    if await db.ensure_pool(wait=False) is None:
        page.error = NOT_INITIALIZED
        return render_index(request, templates, page)

    try:
        async with db.acquire() as conn:
            page.connected = True
            await collect_page_data(conn, page)
    except Exception as e:
        if page.connected:
            # Data is already collected; only the release went wrong
            logger.warning(f"connection release failed: {e!r}")
        else:
            page.error = f"Connection failed: {describe_error(e)}"

    return render_index(request, templates, page)


@router.api_route("/create-table", methods=ACTION_METHODS)
async def create_table(request: Request, db: Database = Depends(get_db)):
    if request.method != "POST":
        return back_to_index()

    try:
        async with db.acquire() as conn:
            await notes_repo.create_notes_table(conn)
    except Exception as e:
        logger.error(f"create table failed: {e!r}")
        return PlainTextResponse(describe_error(e), status_code=500)

    logger.info("notes table ensured")
    return back_to_index()


@router.api_route("/add-note", methods=ACTION_METHODS)
async def add_note(request: Request, db: Database = Depends(get_db)):
    if request.method != "POST":
        return back_to_index()

    form = await request.form()
    content = form.get("content")
    if not isinstance(content, str) or not content:
        return back_to_index()

    try:
        async with db.acquire() as conn:
            await notes_repo.insert_note(conn, content)
    except Exception as e:
        logger.error(f"add note failed: {e!r}")
        return PlainTextResponse(describe_error(e), status_code=500)

    notes_created_total.inc()
    return back_to_index()
