import re
import secrets
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Depends, Request, Form, status
from fastapi.responses import HTMLResponse, RedirectResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

import models
from auth import NotAuthenticated, authenticate, ensure_admin
from config import check_required_settings, get_settings
from database import SessionLocal, get_db, init_db
from forms import (
    from_posted_or_defaults,
    from_stored,
    from_submission,
    records_for_display,
    validate_submission,
)
from logger import logger
from pagination import Pagination, get_offset
from repository import MAX_SQL_INTEGER, SqlTaskRepository, TaskRepository

BASE_DIR = Path(__file__).resolve().parent

settings = get_settings()

check_required_settings(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.app_name}")
    init_db()
    db = SessionLocal()
    try:
        ensure_admin(db, settings.admin_username, settings.admin_password)
    finally:
        db.close()

    yield

    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SessionMiddleware, secret_key=settings.secret_key)


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Database error occurred"},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": f"An unexpected error occurred: {exc}"},
    )


app.mount("/static", StaticFiles(directory=str(BASE_DIR / settings.static_dir)), name="static")
templates = Jinja2Templates(directory=str(BASE_DIR / settings.templates_dir))


@dataclass
class RequestContext:
    """Everything a task page needs from the session, resolved once"""
    user: models.User
    selected_per_page: int
    limit: int


def get_current_user(request: Request, db: Session = Depends(get_db)):
    user_id = request.session.get("user_id")
    if not user_id:
        return None
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_request_context(
    request: Request, current_user: models.User = Depends(get_current_user)
) -> RequestContext:
    if not current_user:
        raise NotAuthenticated()
    options = settings.per_page_options
    selected = request.session.get("selected_per_page")
    if not isinstance(selected, int) or not 0 <= selected < len(options):
        return RequestContext(
            user=current_user,
            selected_per_page=settings.default_per_page_index,
            limit=settings.default_limit,
        )
    return RequestContext(user=current_user, selected_per_page=selected, limit=options[selected])


def get_task_repository(db: Session = Depends(get_db)) -> TaskRepository:
    return SqlTaskRepository(db)


def segment_int(value: Optional[str]) -> int:
    """Read a URL segment as an id, 0 if it isn't one"""
    if value is None or not re.fullmatch(r"-?[0-9]+", value):
        return 0
    return int(value)


def segment_page(value: Optional[str], limit: int) -> int:
    """Read a page number, capped so its offset stays a valid SQL integer"""
    if value is None or not re.fullmatch(r"-?[0-9]+", value):
        return 0
    return min(int(value), MAX_SQL_INTEGER // max(limit, 1))


def get_csrf_token(request: Request) -> str:
    token = request.session.get("csrf_token")
    if not token:
        token = secrets.token_urlsafe(32)
        request.session["csrf_token"] = token
    return token


def csrf_token_valid(request: Request, token: Optional[str]) -> bool:
    expected = request.session.get("csrf_token")
    return bool(expected and token) and secrets.compare_digest(expected.encode(), token.encode())


def set_flashdata(request: Request, message: str):
    request.session["flashdata"] = message


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def render(request: Request, name: str, data: dict, status_code: int = 200):
    context = dict(data)
    context["flashdata"] = request.session.pop("flashdata", None)
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def get_back_url(request: Request) -> str:
    previous_url = request.headers.get("referer", "")
    if previous_url.startswith(str(request.base_url) + "tasks/manage"):
        return previous_url
    return "/tasks/manage"


def not_found(request: Request):
    data = {
        "headline": "Task Not Found",
        "message": "The task you're looking for doesn't exist or has been deleted.",
        "back_url": get_back_url(request),
        "back_label": "Go Back",
    }
    return render(request, "not_found.html", data, status_code=status.HTTP_404_NOT_FOUND)


def show_form(
    request: Request,
    update_id: int,
    repo: TaskRepository,
    raw_fields: Optional[dict] = None,
    errors: Optional[dict] = None,
):
    if update_id > 0 and raw_fields is None:
        record = repo.find_by_id(update_id)
        if record is None:
            logger.info(f"Task {update_id} not found for editing")
            return not_found(request)
        data = from_stored(record)
    else:
        data = from_posted_or_defaults(raw_fields)

    update_id = max(update_id, 0)
    data["update_id"] = update_id
    data["errors"] = errors or {}
    data["headline"] = "Update Task Record" if update_id > 0 else "Create New Task Record"
    data["cancel_url"] = f"/tasks/show/{update_id}" if update_id > 0 else "/tasks/manage"
    data["form_location"] = f"/tasks/submit/{update_id}"
    data["csrf_token"] = get_csrf_token(request)
    return render(request, "create.html", data)


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", response_class=RedirectResponse)
def home():
    return redirect("/tasks/manage")


@app.get("/login", response_class=HTMLResponse)
def login_form(request: Request, current_user: models.User = Depends(get_current_user)):
    if current_user:
        return redirect("/tasks/manage")
    return render(request, "login.html", {"error": None})


@app.post("/login")
def login_user(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    user = authenticate(db, username, password)
    if not user:
        logger.warning(f"Failed login for '{username}'")
        return render(
            request,
            "login.html",
            {"error": "Invalid credentials"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    request.session["user_id"] = user.id
    logger.info(f"User '{username}' logged in")
    return redirect("/tasks/manage")


@app.get("/logout", response_class=RedirectResponse)
def logout_user(request: Request):
    request.session.pop("user_id", None)
    return redirect("/login")


@app.get("/tasks", response_class=RedirectResponse)
def tasks_index():
    return redirect("/tasks/manage")


@app.get("/tasks/manage", response_class=HTMLResponse)
@app.get("/tasks/manage/{page}", response_class=HTMLResponse)
def manage(
    request: Request,
    page: Optional[str] = None,
    ctx: RequestContext = Depends(get_request_context),
    repo: TaskRepository = Depends(get_task_repository),
):
    page_num = segment_page(page, ctx.limit)
    rows = repo.fetch_page(ctx.limit, get_offset(page_num, ctx.limit))
    pagination = Pagination(
        total_rows=repo.count_all(),
        limit=ctx.limit,
        page_num=page_num,
        pagination_root="tasks/manage",
        record_name_plural="tasks",
    )
    data = {
        "rows": records_for_display(rows),
        "pagination": pagination,
        "per_page_options": settings.per_page_options,
        "selected_per_page": ctx.selected_per_page,
    }
    return render(request, "manage.html", data)


@app.get("/tasks/create", response_class=HTMLResponse)
@app.get("/tasks/create/{update_id}", response_class=HTMLResponse)
def create(
    request: Request,
    update_id: Optional[str] = None,
    ctx: RequestContext = Depends(get_request_context),
    repo: TaskRepository = Depends(get_task_repository),
):
    return show_form(request, segment_int(update_id), repo)


@app.post("/tasks/submit")
@app.post("/tasks/submit/{update_id}")
def submit_task(
    request: Request,
    update_id: Optional[str] = None,
    task_title: Optional[str] = Form(None),
    task_description: Optional[str] = Form(None),
    complete: Optional[str] = Form(None),
    submit: Optional[str] = Form(None),
    csrf_token: Optional[str] = Form(None),
    ctx: RequestContext = Depends(get_request_context),
    repo: TaskRepository = Depends(get_task_repository),
):
    if submit != "Submit" or not csrf_token_valid(request, csrf_token):
        return redirect("/tasks/manage")

    task_id = segment_int(update_id)
    raw_fields = {
        "task_title": task_title,
        "task_description": task_description,
        "complete": complete,
    }
    errors = validate_submission(raw_fields)
    if errors:
        return show_form(request, task_id, repo, raw_fields=raw_fields, errors=errors)

    record = from_submission(raw_fields)
    if task_id > 0:
        if not repo.update(task_id, record):
            return not_found(request)
        flash_msg = "Task updated successfully"
    else:
        task_id = repo.insert(record)
        flash_msg = "Task created successfully"

    set_flashdata(request, flash_msg)
    return redirect(f"/tasks/show/{task_id}")


@app.get("/tasks/show/{update_id}", response_class=HTMLResponse)
def show(
    request: Request,
    update_id: str,
    ctx: RequestContext = Depends(get_request_context),
    repo: TaskRepository = Depends(get_task_repository),
):
    task_id = segment_int(update_id)
    record = repo.find_by_id(task_id) if task_id > 0 else None
    if record is None:
        logger.info(f"Task {update_id} not found")
        return not_found(request)

    data = from_stored(record)
    data["update_id"] = task_id
    data["headline"] = "Task Details"
    data["back_url"] = get_back_url(request)
    return render(request, "show.html", data)


@app.get("/tasks/delete_conf/{update_id}", response_class=HTMLResponse)
def delete_conf(
    request: Request,
    update_id: str,
    ctx: RequestContext = Depends(get_request_context),
    repo: TaskRepository = Depends(get_task_repository),
):
    task_id = segment_int(update_id)
    record = repo.find_by_id(task_id) if task_id > 0 else None
    if record is None:
        return not_found(request)

    data = from_stored(record)
    data["update_id"] = task_id
    data["headline"] = "Delete Task Record"
    data["cancel_url"] = f"/tasks/show/{task_id}"
    data["form_location"] = f"/tasks/submit_delete/{task_id}"
    data["csrf_token"] = get_csrf_token(request)
    return render(request, "delete_conf.html", data)


@app.post("/tasks/submit_delete/{update_id}", response_class=RedirectResponse)
def submit_delete(
    request: Request,
    update_id: str,
    submit: Optional[str] = Form(None),
    csrf_token: Optional[str] = Form(None),
    ctx: RequestContext = Depends(get_request_context),
    repo: TaskRepository = Depends(get_task_repository),
):
    if submit != "Yes - Delete Now" or not csrf_token_valid(request, csrf_token):
        return redirect("/tasks/manage")

    task_id = segment_int(update_id)
    if task_id > 0 and repo.delete(task_id):
        set_flashdata(request, "The record was successfully deleted")
    return redirect("/tasks/manage")


@app.get("/tasks/set_per_page/{option_index}", response_class=RedirectResponse)
def set_per_page(
    request: Request,
    option_index: str,
    ctx: RequestContext = Depends(get_request_context),
):
    selected_index = segment_int(option_index)
    if not 0 <= selected_index < len(settings.per_page_options):
        selected_index = settings.default_per_page_index

    request.session["selected_per_page"] = selected_index
    return redirect("/tasks/manage")
