import hmac
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from fastapi.security.utils import get_authorization_scheme_param
from jose import JWTError, jwt

from shortlinks import config

SECRET_KEY = config.SECRET_KEY
ALGORITHM = config.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = config.ACCESS_TOKEN_EXPIRE_MINUTES

USERS = config.parse_users(config.AUTH_USERS)
if config.ADMIN_USERNAME and config.ADMIN_PASSWORD:
    USERS.setdefault(config.ADMIN_USERNAME, config.ADMIN_PASSWORD)

if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY is not set")
if not USERS:
    raise RuntimeError("Set AUTH_USERS (or ADMIN_USERNAME/ADMIN_PASSWORD) in .env")

# auto_error off: a missing token is reported by the link operations themselves
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)

def authenticate_user(username: str, password: str) -> bool:
    expected = USERS.get(username or "")
    return expected is not None and hmac.compare_digest(password or "", expected)

def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def decode_user(token: str | None) -> str | None:
    if not token:
        return None
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")

def get_current_user(request: Request, token: str | None = Depends(oauth2_scheme)) -> str | None:
    """Caller identity from the bearer header, falling back to the dashboard cookie."""
    return decode_user(token) or decode_user(request.cookies.get("access_token"))

def user_from_request(request: Request) -> str | None:
    """Same lookup as get_current_user, for code running outside dependency injection."""
    scheme, token = get_authorization_scheme_param(request.headers.get("Authorization"))
    return get_current_user(request, token if scheme.lower() == "bearer" else None)

def require_user(user: str | None = Depends(get_current_user)) -> str:
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user
