import html
import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm

from shortlinks import auth, config, crud, database, models, resolver, schemas, service
from shortlinks.errors import STATUS_BY_KIND, OperationFailedError, UnauthorizedError, ValidationError

# --- Logging ---
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger("shortlinks")

# --- DB tables ---
models.Base.metadata.create_all(bind=database.engine)

app = FastAPI(
    title="Short Links",
    description="Create short codes that redirect to long URLs and manage them from a dashboard.",
    version="1.0.0",
)

# --- CORS (allow frontend dev servers, etc.) ---
origins = ["*"] if config.ENVIRONMENT == "dev" else [
    config.PUBLIC_BASE_URL or "http://localhost:8000",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _respond(result: schemas.ActionResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    status_code = success_status if result.success else STATUS_BY_KIND.get(result.kind, 500)
    return JSONResponse(result.model_dump(mode="json"), status_code=status_code)

# Bodies that never reach the service still answer with an ActionResult
@app.exception_handler(RequestValidationError)
async def link_body_errors(request: Request, exc: RequestValidationError):
    if request.method == "GET" or not request.url.path.startswith("/links"):
        return await request_validation_exception_handler(request, exc)
    if not auth.user_from_request(request):
        error = UnauthorizedError()
    else:
        error = ValidationError(schemas.field_errors(exc.errors()))
    return _respond(schemas.ActionResult(success=False, error=error.detail, kind=error.kind))

# Small config for frontend to know public base URL
@app.get("/config", include_in_schema=False)
def get_config(request: Request):
    base = config.PUBLIC_BASE_URL or str(request.base_url).rstrip("/")
    return {"public_base_url": base}

# Health check (useful for uptime monitors & load balancers)
@app.get("/health", include_in_schema=False)
def health():
    return {"status": "ok", "env": config.ENVIRONMENT}

# ---------- Auth ----------
@app.post("/login", response_model=schemas.Token)
def login(response: Response, form_data: OAuth2PasswordRequestForm = Depends()):
    if not auth.authenticate_user(form_data.username, form_data.password):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    token = auth.create_access_token({"sub": form_data.username})
    # Only set secure cookie if HTTPS is configured
    is_https = config.PUBLIC_BASE_URL.startswith("https://")
    response.set_cookie(
        key="access_token", value=token,
        httponly=True, samesite="lax", secure=is_https, path="/",
        max_age=auth.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {"access_token": token, "token_type": "bearer"}

@app.post("/logout", response_model=schemas.MessageOut)
def logout(response: Response):
    response.delete_cookie("access_token", path="/")
    return {"ok": True, "detail": "Logged out"}

# ---------- Links ----------
@app.get("/links", response_model=schemas.PaginatedLinks)
def list_links(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db=Depends(database.get_db),
    user: str = Depends(auth.require_user),
):
    items = crud.get_links_by_owner(db, user, skip=skip, limit=limit)
    total = crud.count_links_by_owner(db, user)
    return {"items": items, "total": total, "skip": skip, "limit": limit}

@app.post("/links", response_model=schemas.ActionResult)
def create_link(link_in: schemas.LinkCreate, db=Depends(database.get_db), user=Depends(auth.get_current_user)):
    result = service.create_link(db, user, link_in.target_url, link_in.code)
    return _respond(result, status.HTTP_201_CREATED)

@app.put("/links/{link_id}", response_model=schemas.ActionResult)
def edit_link(link_id: str, link_in: schemas.LinkUpdate, db=Depends(database.get_db), user=Depends(auth.get_current_user)):
    return _respond(service.edit_link(db, user, link_id, link_in.target_url, link_in.code))

@app.delete("/links/{link_id}", response_model=schemas.ActionResult)
def delete_link(link_id: str, db=Depends(database.get_db), user=Depends(auth.get_current_user)):
    return _respond(service.delete_link(db, user, link_id))

# ---------- Public redirect ----------
@app.get("/l/{code}", include_in_schema=False)
def redirect_link(code: str, request: Request, db=Depends(database.get_db)):
    try:
        target_url = resolver.resolve(db, code)
    except OperationFailedError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)
    if target_url is None:
        logger.info("No link for code=%s", code)
        not_found = request.url_for("link_not_found").include_query_params(code=code)
        return RedirectResponse(url=str(not_found), status_code=status.HTTP_302_FOUND)
    # temporary redirect: destinations can be edited
    return RedirectResponse(url=target_url, status_code=status.HTTP_302_FOUND)

@app.get("/link-not-found", response_class=HTMLResponse, include_in_schema=False, name="link_not_found")
def link_not_found(code: str | None = None):
    shown = f"<p><code>/l/{html.escape(code)}</code></p>" if code else ""
    body = (
        "<!doctype html><html><head><title>Link not found</title></head><body>"
        "<h1>404</h1><h2>Link not found</h2>"
        "<p>The short link you're looking for doesn't exist or may have been removed.</p>"
        f"{shown}</body></html>"
    )
    return HTMLResponse(body, status_code=status.HTTP_404_NOT_FOUND)
