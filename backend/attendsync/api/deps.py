from collections.abc import Callable, Generator, Iterable
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from attendsync.core.security import decode_token
from attendsync.db.session import SessionLocal
from attendsync.models.teacher import Teacher

security = HTTPBearer()

ACTOR_ROLES = frozenset({"teacher", "student", "admin"})


@dataclass(frozen=True)
class Actor:
    id: str
    role: str


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_actor(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Actor:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
    except JWTError as exc:
        raise credentials_exception from exc

    actor_id = payload.get("sub")
    role = payload.get("role")
    if not actor_id or role not in ACTOR_ROLES:
        raise credentials_exception
    return Actor(id=str(actor_id), role=str(role))


def require_roles(*roles: str) -> Callable[[Actor], Actor]:
    allowed_roles: Iterable[str] = set(roles)

    def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return actor

    return role_checker


def get_current_teacher(
    actor: Actor = Depends(require_roles("teacher")),
    db: Session = Depends(get_db),
) -> Teacher:
    teacher = db.get(Teacher, actor.id)
    if teacher is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not teacher.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Teacher account is inactive")
    return teacher
