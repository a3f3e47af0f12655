from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI
import sqlalchemy
from fastapi_datagrid import (
    DataGridExport,
    DataGridPage,
    ExportOptions,
    GridConfig,
    csv_response,
)
from fastapi_pagination import Page, add_pagination
from sqlalchemy import String, ForeignKey, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column, relationship, declarative_base
import uvicorn

from examples.schemas import StatusEnum, UserResponse

# ───── App & DB Setup ───────────────────────────

DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(DATABASE_URL, echo=True)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)
Base = declarative_base()


async def get_db():
    async with SessionLocal() as session:
        yield session


# ───── Models ────────────────────────────────────

class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)

    users: Mapped[list["User"]] = relationship("User", back_populates="role")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String, index=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.id"))
    age: Mapped[int] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    status: Mapped[StatusEnum] = mapped_column(
        sqlalchemy.Enum(StatusEnum),
        default=StatusEnum.ACTIVE,
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(default=lambda: datetime.now(timezone.utc))

    role: Mapped["Role"] = relationship("Role", back_populates="users", lazy="selectin")


# ───── Grid Configuration ───────────────────────

def adults_only(value: str):
    # ?filter[adult]=1
    return User.age >= 18 if value == "1" else None


def by_name_length(query, descending: bool):
    length = sqlalchemy.func.length(User.name)
    return query.order_by(length.desc() if descending else length.asc())


users_grid = GridConfig(
    query=lambda: select(User),
    defaults={"per_page": 10, "sorts": "name"},
    searchable=[
        "name",
        "email",
        "role.name",
        lambda text: User.id == int(text) if text.strip().isdigit() else None,
    ],
    filterable={
        "status": "status",
        "active": User.is_active,
        "role": "role.name",
        "adult": adults_only,
    },
    sortable={
        "name": "name",
        "age": User.age,
        "created": User.created_at,
        "role": "role.name",
        "name_length": by_name_length,
    },
    export_options=ExportOptions(
        fields=["id", "name", "email", ("Role", "role.name"), {"label": "Status", "value": "status"}]
    ),
)


# ───── Lifespan / Seed Data ─────────────────────

@asynccontextmanager
async def lifespan(_: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as session:
        result = await session.execute(select(Role))
        if not result.scalars().first():
            admin = Role(name="admin")
            user = Role(name="user")
            manager = Role(name="manager")
            session.add_all([admin, user, manager])
            await session.commit()

            session.add_all([
                User(name="Alice", email="alice@example.com", role=admin,
                     status=StatusEnum.ACTIVE, age=30, is_active=True),
                User(name="Bob", email="bob@example.com", role=user,
                     status=StatusEnum.INACTIVE, age=25, is_active=False),
                User(name="Carol", email="carol@example.com", role=manager,
                     status=StatusEnum.SUSPENDED, age=40, is_active=False),
                User(name="Dave", email="dave@example.com", role=admin,
                     status=StatusEnum.ACTIVE, age=35, is_active=True),
                User(name="Eve", email="eve@example.com", role=user,
                     status=StatusEnum.ACTIVE, age=17, is_active=True),
            ])
            await session.commit()

    yield

# ───── FastAPI App ───────────────────────────────

app = FastAPI(lifespan=lifespan)


@app.get("/users", response_model=Page[UserResponse])
async def get_users(page=DataGridPage(users_grid, get_db)):
    """
    Examples:

    GET /users?search=ali
    GET /users?filter[status]=active&filter[role]=admin
    GET /users?filter={"active":"true"}
    GET /users?sort=-age,name&page=2&perPage=5
    """
    return page


@app.get("/users/export")
async def export_users(content=DataGridExport(users_grid, get_db)):
    return csv_response(content, filename="users.csv")


add_pagination(app)

# ───── Run Server ────────────────────────────────

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
