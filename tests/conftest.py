"""
Shared fixtures for asset import tests.

Every test gets a fresh in-memory SQLite database carrying the full ORM
schema and a small category tree:

    1 服务器 ── 11 机架式服务器 ── 111 2U服务器
    2 网络设备 ── 21 交换机 ── 211 核心交换机
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest
from openpyxl import Workbook
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import db.models  # noqa: F401 registers all ORM models on Base.metadata
from app.services.asset_import_service import AssetImportService
from app.services.import_orchestrator_service import ImportOrchestratorService
from app.services.import_task_registry import InMemoryImportTaskRegistry
from db.base import Base
from db.models.category_node import CategoryNode
from db.session import build_session_factory

DEFAULT_HEADERS: tuple[str, ...] = (
    "资产编号",
    "资产名称",
    "序列号",
    "型号",
    "资产状态",
    "一级分类",
    "二级分类",
    "三级分类",
    "数据中心",
    "机房",
    "机柜",
    "U位",
    "变更后数据中心",
    "变更后机房",
    "变更后机柜",
    "变更后U位",
    "合同号",
    "维保开始日期",
    "维保结束日期",
    "维保提供商",
    "资产使用年限(年)",
)


class InlineExecutor:
    """
    Runs submitted work immediately on the calling thread.
    """

    def __init__(self) -> None:
        self.submitted = 0

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self.submitted += 1
        task(*args, **kwargs)


class DeferredExecutor:
    """
    Queues submitted work until ``run_all`` is called.
    """

    def __init__(self) -> None:
        self.pending: list[tuple[Callable[..., None], tuple[Any, ...], dict[str, Any]]] = []

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self.pending.append((task, args, kwargs))

    def run_all(self) -> None:
        while self.pending:
            task, args, kwargs = self.pending.pop(0)
            task(*args, **kwargs)


def write_workbook(
    path: Path,
    rows: Sequence[Mapping[str, Any] | None],
    *,
    headers: Sequence[str] = DEFAULT_HEADERS,
) -> Path:
    """
    Write a one-sheet workbook. ``None`` entries in ``rows`` become blank rows.
    """

    workbook = Workbook()
    sheet = workbook.active
    sheet.append(list(headers))
    for row in rows:
        if row is None:
            sheet.append([None] * len(headers))
            continue
        sheet.append([row.get(header) for header in headers])
    workbook.save(path)
    return path


def drop_schema(engine: Engine) -> None:
    """
    Drop every table. category_nodes references itself, so foreign keys are
    switched off on the connection first.
    """

    with engine.begin() as connection:
        connection.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(connection)
        connection.exec_driver_sql("PRAGMA foreign_keys=ON")


def asset_row(index: int, **overrides: Any) -> dict[str, Any]:
    """
    A valid sheet row in the 服务器 / 机架式服务器 / 2U服务器 category.
    """

    row: dict[str, Any] = {
        "资产编号": f"ZC-{index:04d}",
        "资产名称": f"应用服务器{index}",
        "序列号": f"SN{index:06d}",
        "型号": "R740",
        "资产状态": "使用中",
        "一级分类": 1,
        "二级分类": 11,
        "三级分类": 111,
    }
    row.update(overrides)
    return row


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    drop_schema(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return build_session_factory(engine)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    with session_factory() as session:
        yield session


@pytest.fixture()
def categories(session_factory: sessionmaker[Session]) -> dict[str, int]:
    nodes = [
        CategoryNode(id=1, level=1, name="服务器", code="SV"),
        CategoryNode(id=2, level=1, name="网络设备", code="NW"),
        CategoryNode(id=11, level=2, name="机架式服务器", code="RK", parent_id=1),
        CategoryNode(id=21, level=2, name="交换机", code="SW", parent_id=2),
        CategoryNode(id=111, level=3, name="2U服务器", code="2U", parent_id=11),
        CategoryNode(id=211, level=3, name="核心交换机", code="CS", parent_id=21),
    ]
    with session_factory() as session:
        session.add_all(nodes)
        session.commit()
    return {
        "server": 1,
        "network": 2,
        "rack_server": 11,
        "switch": 21,
        "server_2u": 111,
        "core_switch": 211,
    }


@pytest.fixture()
def registry() -> InMemoryImportTaskRegistry:
    return InMemoryImportTaskRegistry(progress_interval=1, task_ttl_seconds=3600, max_recorded_errors=50)


@pytest.fixture()
def import_service() -> AssetImportService:
    return AssetImportService(default_operator="EXCEL_IMPORT")


@pytest.fixture()
def orchestrator(
    session_factory: sessionmaker[Session],
    registry: InMemoryImportTaskRegistry,
    import_service: AssetImportService,
    categories: dict[str, int],
) -> ImportOrchestratorService:
    return ImportOrchestratorService(
        session_factory=session_factory,
        registry=registry,
        import_service=import_service,
        max_upload_bytes=1024 * 1024,
        default_operator="EXCEL_IMPORT",
    )
