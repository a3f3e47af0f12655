import enum
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi_pagination import Page
from pydantic import BaseModel, ConfigDict
from sqlalchemy import Enum, ForeignKey, String, func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from fastapi_datagrid import (
    DataGrid,
    DataGridExport,
    DataGridPage,
    DataGridQuery,
    ExportOptions,
    GridConfig,
    csv_response,
)


class Base(DeclarativeBase):
    pass


class Status(str, enum.Enum):
    active = "active"
    inactive = "inactive"


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50), unique=True)

    users: Mapped[list["User"]] = relationship(back_populates="role")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(200), unique=True)
    age: Mapped[int | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True)
    status: Mapped[Status] = mapped_column(Enum(Status), default=Status.active)
    role_id: Mapped[int | None] = mapped_column(ForeignKey("roles.id"), nullable=True)

    role: Mapped[Role | None] = relationship(back_populates="users", lazy="selectin")


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    creator_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    # plain lazy="select" relationships
    owner: Mapped[User] = relationship(foreign_keys=[owner_id])
    creator: Mapped[User] = relationship(foreign_keys=[creator_id])


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    age: int | None
    is_active: bool


SEED = [
    ("Alice", "alice@example.com", 30, True, Status.active, "admin"),
    ("Bob", "bob@example.com", 25, False, Status.inactive, "user"),
    ("Carol", "carol@example.com", 40, False, Status.inactive, "manager"),
    ("Dave", "dave_100%@example.com", 35, True, Status.active, "admin"),
    ("Eve", "eve@example.com", 28, True, Status.active, "user"),
    ("Frank", "frank@example.com", None, True, Status.active, None),
]


TICKETS = [
    ("Broken login", "Alice", "Bob"),
    ("Slow export", "Eve", "Alice"),
    ("Typo on home page", "Bob", "Eve"),
]


def users_grid(**overrides) -> GridConfig:
    options = dict(
        query=lambda: select(User),
        searchable=["name", "email", "role.name"],
        filterable={
            "status": "status",
            "active": User.is_active,
            "role": "role.name",
            "min_age": lambda value: User.age >= int(value) if value.isdigit() else None,
        },
        sortable={
            "name": "name",
            "age": User.age,
            "role": "role.name",
            "name_length": lambda query, descending: query.order_by(
                func.length(User.name).desc() if descending else func.length(User.name).asc()
            ),
        },
        export_options=ExportOptions(
            fields=["name", "email", ("Role", "role.name"), {"label": "Status", "value": "status"}]
        ),
    )
    options.update(overrides)
    return GridConfig(**options)


def tickets_grid(**overrides) -> GridConfig:
    options = dict(
        query=lambda: select(Ticket),
        filterable={"owner": "owner.name", "creator": "creator.name"},
        sortable={"title": "title", "owner": "owner.name", "creator": "creator.name"},
        export_options=ExportOptions(
            fields=["title", ("Owner", "owner.name"), ("Owner role", "owner.role.name"), ("Creator", "creator.name")]
        ),
    )
    options.update(overrides)
    return GridConfig(**options)


def create_app(database_url: str, grid: DataGrid | None = None) -> FastAPI:
    engine = create_async_engine(database_url)
    SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)

    async def get_db():
        async with SessionLocal() as session:
            yield session

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with SessionLocal() as session:
            roles = {name: Role(name=name) for name in ("admin", "user", "manager")}
            session.add_all(roles.values())
            for name, email, age, is_active, status, role in SEED:
                session.add(
                    User(
                        name=name,
                        email=email,
                        age=age,
                        is_active=is_active,
                        status=status,
                        role=roles.get(role) if role else None,
                    )
                )
            await session.flush()
            users = {user.name: user for user in (await session.scalars(select(User))).all()}
            for title, owner, creator in TICKETS:
                session.add(Ticket(title=title, owner=users[owner], creator=users[creator]))
            await session.commit()
        yield
        await engine.dispose()

    grid = grid or DataGrid()
    config = users_grid()
    app = FastAPI(lifespan=lifespan)

    @app.get("/users", response_model=Page[UserOut])
    async def list_users(page=DataGridPage(config, get_db, grid=grid)):
        return page

    @app.get("/users/names")
    async def list_names(query=DataGridQuery(config, grid=grid), db=Depends(get_db)):
        result = await db.execute(query)
        return [user.name for user in result.scalars().all()]

    @app.get("/users/export")
    async def export_users(content=DataGridExport(config, get_db, grid=grid)):
        return csv_response(content, filename="users.csv")

    @app.get("/tickets/export")
    async def export_tickets(content=DataGridExport(tickets_grid(), get_db, grid=grid)):
        return csv_response(content, filename="tickets.csv")

    return app
